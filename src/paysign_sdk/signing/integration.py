"""
HTTP client integration for request signing

This module hooks the request signer into the requests pipeline. requests
applies authentication handlers after the body has been serialized (JSON,
form data, multipart) and before the request is sent, so the signer always
digests the exact bytes that go on the wire.
"""

import logging
from typing import Optional, Union
from urllib.parse import urlsplit

import requests
from requests.auth import AuthBase
from requests.exceptions import TooManyRedirects
from requests.models import PreparedRequest, Response
from requests.sessions import Session

from .types import (
    SigningRequest,
    SigningKeyMaterial,
    SignatureHeaders,
    SigningError,
    SigningErrorCodes,
    Clock,
)
from .signer import RequestSigner

logger = logging.getLogger(__name__)

DEFAULT_MAX_REDIRECTS = 30


class SigningAuth(AuthBase):
    """
    requests authentication handler that signs every prepared request.

    requests rebuilds redirected requests without calling the auth handler
    again, so a followed redirect would carry a signature for the old target
    or none at all. The handler follows redirects itself from a response
    hook and signs every hop for its own method, path and body.

    Usage:
        session.auth = SigningAuth(key)
        requests.get(url, auth=SigningAuth(key))
    """

    def __init__(
        self,
        key: SigningKeyMaterial,
        clock: Optional[Clock] = None,
        max_redirects: int = DEFAULT_MAX_REDIRECTS
    ):
        self.key = key
        self.signer = RequestSigner(key, clock)
        self.max_redirects = max_redirects

    def __call__(self, r: PreparedRequest) -> PreparedRequest:
        headers = self.sign(r)
        r.headers.update(headers.headers)
        r.register_hook('response', self.handle_redirect)
        return r

    def handle_redirect(self, r: Response, **kwargs) -> Response:
        """
        Follow a redirect with a request signed for the new target.

        Args:
            r: Response received for the signed request
            **kwargs: Transport arguments of the original send

        Returns:
            Response: The first response that is not a redirect

        Raises:
            SigningError: If a redirected request cannot be signed
            TooManyRedirects: If more than max_redirects hops are followed
        """
        while r.is_redirect:
            history = list(r.history)
            if len(history) >= self.max_redirects:
                raise TooManyRedirects(f"Exceeded {self.max_redirects} redirects.", response=r)

            # Session only rebuilds the next request here; it sends nothing
            with Session() as redirector:
                redirector.trust_env = False
                prep = next(redirector.resolve_redirects(r, r.request, yield_requests=True, **kwargs))
            r.history = history

            prep.headers.update(self.sign(prep).headers)
            logger.debug(f"Re-signed redirect from {r.url} to {prep.url}")

            next_response = r.connection.send(prep, **kwargs)
            next_response.history = history + [r]
            next_response.request = prep
            r = next_response

        return r

    def sign(self, r: PreparedRequest) -> SignatureHeaders:
        """
        Compute signature headers for a prepared request without mutating it.

        Raises:
            SigningError: If signing fails; the request must not be sent
        """
        parts = urlsplit(r.url)
        signing_request = SigningRequest(
            method=r.method,
            path=parts.path,
            query=parts.query or None,
            body=r.body
        )

        result = self.signer.sign(signing_request)
        logger.debug(f"Signed {r.method} request to {r.url}")
        return result


class SigningSession:
    """
    HTTP session wrapper with automatic request signing capability.

    This class wraps a requests.Session and signs outgoing requests with
    the configured key. Signing failures propagate to the caller; a request
    is never sent without its signature headers while signing is enabled.
    """

    def __init__(
        self,
        key: Optional[SigningKeyMaterial] = None,
        session: Optional[Session] = None,
        auto_sign: bool = True,
        clock: Optional[Clock] = None
    ):
        """
        Initialize signing session.

        Args:
            key: Optional signing key material
            session: Optional existing requests session to wrap
            auto_sign: Whether to automatically sign requests
            clock: Optional clock used for the Date header
        """
        self.session = session or requests.Session()
        self.key = key
        self.clock = clock
        self.auth = SigningAuth(key, clock) if key else None
        self.auto_sign = False
        if auto_sign:
            self.enable_signing()

    def configure_signing(
        self,
        key: SigningKeyMaterial,
        auto_sign: bool = True
    ) -> None:
        """
        Configure request signing for this session.

        Args:
            key: Signing key material
            auto_sign: Whether to automatically sign requests
        """
        self.key = key
        self.auth = SigningAuth(key, self.clock)
        logger.info(f"Configured request signing for key ID: {key.key_id}")
        if auto_sign:
            self.enable_signing()
        else:
            self.disable_signing()

    def disable_signing(self) -> None:
        """Disable automatic request signing."""
        self.auto_sign = False
        if isinstance(self.session.auth, SigningAuth):
            self.session.auth = None
        logger.info("Disabled automatic request signing")

    def enable_signing(self) -> None:
        """Enable automatic request signing (if configured)."""
        if self.auth:
            self.auto_sign = True
            self.session.auth = self.auth
            logger.info("Enabled automatic request signing")
        else:
            logger.warning("Cannot enable signing - no signing key available")

    def request(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        Make HTTP request, signed when signing is enabled.

        Raises:
            SigningError: If the request cannot be signed
        """
        return self.session.request(method, url, **kwargs)

    def get(self, url: str, **kwargs) -> requests.Response:
        """Make GET request."""
        return self.request('GET', url, **kwargs)

    def post(self, url: str, **kwargs) -> requests.Response:
        """Make POST request."""
        return self.request('POST', url, **kwargs)

    def put(self, url: str, **kwargs) -> requests.Response:
        """Make PUT request."""
        return self.request('PUT', url, **kwargs)

    def delete(self, url: str, **kwargs) -> requests.Response:
        """Make DELETE request."""
        return self.request('DELETE', url, **kwargs)

    def patch(self, url: str, **kwargs) -> requests.Response:
        """Make PATCH request."""
        return self.request('PATCH', url, **kwargs)

    def head(self, url: str, **kwargs) -> requests.Response:
        """Make HEAD request."""
        return self.request('HEAD', url, **kwargs)

    def options(self, url: str, **kwargs) -> requests.Response:
        """Make OPTIONS request."""
        return self.request('OPTIONS', url, **kwargs)

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def create_signing_session(
    key: Optional[SigningKeyMaterial] = None,
    auto_sign: bool = True,
    clock: Optional[Clock] = None,
    **session_kwargs
) -> SigningSession:
    """
    Create a new signing session.

    Args:
        key: Optional signing key material
        auto_sign: Whether to automatically sign requests
        clock: Optional clock used for the Date header
        **session_kwargs: Attributes to set on the requests.Session

    Returns:
        SigningSession: Configured signing session
    """
    session = requests.Session()

    for name, value in session_kwargs.items():
        if hasattr(session, name):
            setattr(session, name, value)

    return SigningSession(key=key, session=session, auto_sign=auto_sign, clock=clock)


def enable_request_signing(
    session: Union[Session, SigningSession],
    key: SigningKeyMaterial,
    clock: Optional[Clock] = None
) -> None:
    """
    Enable request signing for an existing session.

    Raises:
        SigningError: If session type is not supported
    """
    if isinstance(session, SigningSession):
        session.configure_signing(key, auto_sign=True)
    elif isinstance(session, Session):
        session.auth = SigningAuth(key, clock)
    else:
        raise SigningError(
            f"Unsupported session type: {type(session)}",
            SigningErrorCodes.INVALID_CONFIG,
            {"session_type": str(type(session))}
        )


def disable_request_signing(session: Union[Session, SigningSession]) -> None:
    """
    Disable request signing for a session.

    Args:
        session: Session to disable signing for
    """
    if isinstance(session, SigningSession):
        session.disable_signing()
    elif isinstance(getattr(session, 'auth', None), SigningAuth):
        session.auth = None


def sign_prepared_request(
    prepared_request: PreparedRequest,
    key: SigningKeyMaterial,
    clock: Optional[Clock] = None
) -> PreparedRequest:
    """
    Sign a prepared request in place.

    Args:
        prepared_request: Prepared request whose body is already final
        key: Signing key material
        clock: Optional clock used for the Date header

    Returns:
        PreparedRequest: The same request with signature headers merged in

    Raises:
        SigningError: If signing fails
    """
    return SigningAuth(key, clock)(prepared_request)
