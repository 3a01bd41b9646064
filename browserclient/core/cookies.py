"""Cookie jar construction with public-suffix aware domain rules."""

from __future__ import annotations

import copy
import logging
from functools import lru_cache
from http.cookiejar import Cookie, DefaultCookiePolicy, request_host
from typing import Any, Optional

from publicsuffixlist import PublicSuffixList
from requests.cookies import RequestsCookieJar

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_public_suffix_list() -> PublicSuffixList:
    """Return the bundled public suffix list, parsed once per process."""

    return PublicSuffixList()


class PublicSuffixCookiePolicy(DefaultCookiePolicy):
    """DefaultCookiePolicy that refuses cookies scoped to a public suffix.

    A response from ``shop.example.co.uk`` may set a cookie for
    ``example.co.uk`` but not for ``co.uk``. A public-suffix domain that equals
    the request host is downgraded to a host-only cookie. Host-only cookies
    are only returned to the exact host that set them.
    """

    def __init__(self, psl: Optional[PublicSuffixList] = None, **kwargs: Any) -> None:
        kwargs.setdefault("strict_ns_domain", DefaultCookiePolicy.DomainStrictNonDomain)
        super().__init__(**kwargs)
        self._psl = psl or get_public_suffix_list()

    def set_ok_domain(self, cookie: Cookie, request: Any) -> bool:
        if cookie.domain_specified:
            domain = cookie.domain.lstrip(".").lower()
            host = request_host(request).lower()
            if self._psl.is_public(domain):
                if domain != host:
                    logger.debug(
                        "Rejected cookie %s: domain %s is a public suffix (host=%s)",
                        cookie.name,
                        domain,
                        host,
                    )
                    return False
                cookie.domain = host
                cookie.domain_specified = False
                cookie.domain_initial_dot = False
        return super().set_ok_domain(cookie, request)


def new_cookie_jar() -> RequestsCookieJar:
    """Create an empty jar enforcing the public suffix rules."""

    return RequestsCookieJar(policy=PublicSuffixCookiePolicy())


def copy_cookie_jar(source: RequestsCookieJar) -> RequestsCookieJar:
    """Return an independent jar holding copies of every cookie in ``source``."""

    jar = new_cookie_jar()
    for cookie in source:
        jar.set_cookie(copy.copy(cookie))
    return jar


__all__ = [
    "PublicSuffixCookiePolicy",
    "copy_cookie_jar",
    "get_public_suffix_list",
    "new_cookie_jar",
]
