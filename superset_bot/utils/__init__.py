"""
UTILITIES PACKAGE
=================

Helpers used by the services (no HTTP, no business logic):

  time_info - utc_timestamp(): ISO-8601 UTC time for the health check and the exchange log.
  retry     - with_retry(fn): awaits fn(); on a transient failure retries after a fixed delay.
"""
