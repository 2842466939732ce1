# Share client services
from dexcom_share.services.dexcom import Dexcom
from dexcom_share.services.session import SessionManager, SessionState
from dexcom_share.services.share_api import ShareApi

__all__ = [
    "Dexcom",
    "SessionManager",
    "SessionState",
    "ShareApi",
]
