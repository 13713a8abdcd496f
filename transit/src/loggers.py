from typing import Optional

from transit.src import openobserve
from transit.src.auth import SessionContext
from transit.src.schemas import RequestInfo


def logEvent(
    context: Optional[SessionContext],
    requestInfo: RequestInfo,
    data: dict,
) -> None:
    """
    Log an event to OpenObserve with request and account context.

    Args:
        context (Optional[SessionContext]): Session of the caller, if any.
        requestInfo (RequestInfo): Metadata about the current request.
        data (dict): Additional event-specific details to include in the log.

    Notes:
        - Automatically attaches `_method`, `_path` and, when signed in,
          `_account_id`.
        - Access tokens must be removed from `data` by the caller.
    """
    logDetails = {
        "_method": requestInfo.method,
        "_path": requestInfo.path,
    }

    if context is not None and context.user is not None:
        logDetails["_account_id"] = context.user.id

    logDetails.update(data)
    openobserve.logEvent(logDetails)
