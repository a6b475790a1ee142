"""Coercion of caller parameters to their enumerated values."""

from futurefetch.features.fetch.models import (
    FetchCache,
    FetchMethod,
    FetchParams,
    FetchRedirect,
)


def normalize_method(value: str) -> FetchMethod:
    """Uppercase a method name, falling back to GET if unrecognized."""
    try:
        return FetchMethod(value.upper())
    except ValueError:
        return FetchMethod.GET


def normalize_cache(value: str) -> FetchCache:
    """Map a cache mode string, falling back to ``default``."""
    try:
        return FetchCache(value)
    except ValueError:
        return FetchCache.DEFAULT


def normalize_redirect(value: str) -> FetchRedirect:
    """Map a redirect mode string, falling back to ``follow``."""
    try:
        return FetchRedirect(value)
    except ValueError:
        return FetchRedirect.FOLLOW


def normalize_params(params: FetchParams | None) -> FetchParams:
    """Normalize request parameters.

    Never fails: unknown or unset values degrade to GET, ``default``
    cache mode and ``follow`` redirect mode.

    Args:
        params: Caller parameters, or None.

    Returns:
        Parameters with method, cache and redirect set to enumerated values.
    """
    if params is None:
        params = FetchParams()

    return params.model_copy(
        update={
            "method": normalize_method(params.method).value,
            "cache": normalize_cache(params.cache).value,
            "redirect": normalize_redirect(params.redirect).value,
        }
    )
