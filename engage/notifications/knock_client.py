"""HTTP client for triggering Knock notification workflows.

Knock fans a workflow trigger out to each recipient's channels (in-app
feed, email, push). This client only sends the trigger; delivery is
Knock's concern.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from engage.logging import get_logger

from .models import WorkflowTriggerError

logger = get_logger(__name__, component="notification")

DEFAULT_BASE_URL = "https://api.knock.app/v1"


class KnockClient:
    """Thin wrapper around the Knock workflow trigger endpoint.

    Attributes:
        base_url: API root, without trailing slash
        timeout: HTTP request timeout in seconds
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = 10,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize client.

        Args:
            api_key: Knock secret API key
            base_url: API root (default https://api.knock.app/v1)
            timeout: HTTP request timeout in seconds
            session: Optional requests session (creates one if None)

        Raises:
            ValueError: If api_key is empty
        """
        if not api_key or not api_key.strip():
            raise ValueError("Knock API key cannot be empty")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {api_key.strip()}",
                "Content-Type": "application/json",
            }
        )

    def trigger_workflow(
        self, workflow_key: str, recipients: List[str], data: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Trigger a workflow for the given recipients.

        Args:
            workflow_key: Knock workflow key (e.g. "need_match")
            recipients: Recipient user ids
            data: Workflow payload

        Returns:
            Parsed JSON response (contains workflow_run_id)

        Raises:
            WorkflowTriggerError: On HTTP error status, timeout, connection
                failure, or an undecodable response
        """
        url = f"{self.base_url}/workflows/{workflow_key}/trigger"

        try:
            logger.debug(
                f"Triggering workflow {workflow_key} for {len(recipients)} recipient(s)",
                extra={
                    "event": "notification.trigger.request",
                    "workflow_key": workflow_key,
                    "recipient_count": len(recipients),
                    "url": url,
                },
            )

            response = self._session.post(
                url,
                json={"recipients": list(recipients), "data": data},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Workflow trigger to {url} timed out after {self.timeout} seconds",
                extra={
                    "event": "notification.trigger.retryable_error",
                    "error_type": "Timeout",
                    "url": url,
                },
            )
            raise WorkflowTriggerError(
                f"Workflow trigger timed out after {self.timeout} seconds", retryable=True
            ) from e
        except requests.exceptions.RequestException as e:
            logger.warning(
                f"Workflow trigger to {url} failed: {e}",
                extra={
                    "event": "notification.trigger.retryable_error",
                    "error_type": type(e).__name__,
                    "url": url,
                },
            )
            raise WorkflowTriggerError(f"Workflow trigger failed: {e}", retryable=True) from e

        if response.status_code >= 400:
            is_retryable = response.status_code >= 500 or response.status_code == 429
            event_name = (
                "notification.trigger.retryable_error" if is_retryable else "notification.trigger.error"
            )
            log_level = logging.WARNING if is_retryable else logging.ERROR

            logger.log(
                log_level,
                f"HTTP {response.status_code} from workflow trigger {workflow_key}",
                extra={
                    "event": event_name,
                    "status_code": response.status_code,
                    "workflow_key": workflow_key,
                },
            )
            raise WorkflowTriggerError(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                retryable=is_retryable,
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error(
                f"Failed to parse workflow trigger response for {workflow_key}",
                extra={
                    "event": "notification.trigger.error",
                    "error_type": "JSONDecodeError",
                    "workflow_key": workflow_key,
                },
            )
            raise WorkflowTriggerError(
                f"Failed to parse workflow trigger response: {e}",
                status_code=response.status_code,
            ) from e
