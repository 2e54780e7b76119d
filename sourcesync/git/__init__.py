"""
Git operations for sourcesync.

    - gateway: git primitives against one working directory (GitPython)
    - refs: (ref, commit) -> refspec, and post-fetch checkout target
"""

from .gateway import GitGateway, create_gateway
from .refs import CheckoutInfo, RemoteRefs, get_checkout_info, get_ref_spec

__all__ = [
    "GitGateway",
    "create_gateway",
    "CheckoutInfo",
    "RemoteRefs",
    "get_checkout_info",
    "get_ref_spec",
]
