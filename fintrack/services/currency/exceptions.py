"""Exchange rate exceptions."""


class RateFetchError(Exception):
    """Rates could not be fetched: network failure, non-success status or bad payload."""


class MalformedPayloadError(RateFetchError):
    """Provider responded, but the payload does not have the expected shape."""
