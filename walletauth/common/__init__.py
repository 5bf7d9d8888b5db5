# Common utilities
from walletauth.common.codec import SignatureCodec as SignatureCodec
from walletauth.common.crypto import DetachedVerifier as DetachedVerifier
from walletauth.common.logging_utils import setup_logger as setup_logger

__all__ = ["DetachedVerifier", "SignatureCodec", "setup_logger"]
