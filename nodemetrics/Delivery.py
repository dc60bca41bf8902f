import json

import requests

from .log import get_logger
from .Stats import Report
from .utils import CancellationToken

logger = get_logger(__name__)

DELIVERY_TIMEOUT_SECONDS = 30


class DeliverySink:
    def __init__(
        self,
        url: str,
        token: str | None = None,
        session: requests.Session | None = None,
        timeout: float = DELIVERY_TIMEOUT_SECONDS,
    ):
        """
        Initializes a new instance of the DeliverySink class.

        Args:
            url (str): The collector endpoint reports are POSTed to.
            token (str, optional): Sent verbatim as the Authorization header when set.
            session (requests.Session, optional): HTTP session to reuse. A new one is created if omitted.
            timeout (float, optional): Client-side timeout for one POST. Defaults to 30 seconds.
        """
        self.url = url
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    def headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = self.token
        return headers

    def deliver(self, report: Report, cancel: CancellationToken | None = None) -> bool:
        """
        POSTs `report` once. Failures are logged and the report is dropped; nothing is retried or raised.

        Args:
            report (Report): The report to send.
            cancel (CancellationToken, optional): When already cancelled the request is not issued.

        Returns:
            bool: True if the collector answered with a 2xx status.
        """
        try:
            body = json.dumps(report.to_dict(), allow_nan=False)
        except (TypeError, ValueError) as e:
            logger.error("Error marshaling JSON", error=str(e))
            return False

        if cancel is not None and cancel.cancelled:
            logger.warning("Shutdown requested, report not sent", url=self.url)
            return False

        try:
            response = self.session.post(self.url, data=body, headers=self.headers(), timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Error sending metrics", url=self.url, error=str(e))
            return False

        status_code = response.status_code
        response.close()
        if not 200 <= status_code < 300:
            logger.error("Server rejected metrics", url=self.url, status_code=status_code)
            return False

        logger.debug("Metrics delivered", url=self.url, status_code=status_code)
        return True
