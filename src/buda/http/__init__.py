"""HTTP layer -- request signing, transport with retry, and response classification."""

from buda.http.classifier import Failure, Success, classify, extract_error_message
from buda.http.signer import NonceGenerator, RequestSigner
from buda.http.transport import HttpTransport

__all__ = [
    "Failure",
    "HttpTransport",
    "NonceGenerator",
    "RequestSigner",
    "Success",
    "classify",
    "extract_error_message",
]
