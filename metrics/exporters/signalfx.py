"""Blocking HTTP transport for SignalFx protobuf uploads"""
from typing import Optional, Sequence
import httpx
from google.protobuf.message import EncodeError as ProtobufEncodeError
from .. import signalfx_pb
from logging_config import get_logger


logger = get_logger(__name__)

CONTENT_TYPE = "application/x-protobuf"
AUTH_HEADER = "X-SF-TOKEN"


class TransportError(Exception):
    """Base class for failed emissions; the batch is dropped"""


class EncodeError(TransportError):
    """The batch could not be serialized"""


class NetworkError(TransportError):
    """The request could not be completed"""


class RemoteRejectedError(TransportError):
    """The backend answered with a status other than 200"""

    def __init__(self, status: int, body: str):
        super().__init__(f"SignalFx rejected payload with status {status}: {body}")
        self.status = status
        self.body = body


class SignalFxTransport:
    """Posts serialized datapoint batches to a SignalFx ingest endpoint"""

    def __init__(self, endpoint: str, auth_token: str, timeout: float = 2.0,
                 client: Optional[httpx.Client] = None):
        self.endpoint = endpoint
        self.auth_token = auth_token
        # Only the connect phase is bounded
        self.timeout = httpx.Timeout(None, connect=timeout)
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=self.timeout)

    def send(self, datapoints: Sequence) -> int:
        """Send one batch and return how many datapoints the backend accepted.

        Empty batches and missing credentials are skipped and return 0. Every
        other failure raises a TransportError subclass.
        """
        logger.info("Starting to emit datapoints", datapoint_count=len(datapoints))

        if not datapoints:
            logger.warning("Skipping send because of an empty payload")
            return 0

        if not self.auth_token or not self.endpoint:
            logger.warning(
                "Skipping emission because the auth token or the endpoint is missing",
                datapoint_count=len(datapoints),
                endpoint=self.endpoint or None,
            )
            return 0

        try:
            payload = signalfx_pb.DataPointUploadMessage()
            payload.datapoints.extend(datapoints)
            serialized = payload.SerializeToString()
        except (ProtobufEncodeError, TypeError) as e:
            raise EncodeError(f"Failed to serialize payload: {e}") from e

        try:
            response = self._client.post(
                self.endpoint,
                content=serialized,
                headers={AUTH_HEADER: self.auth_token, "Content-Type": CONTENT_TYPE},
                timeout=self.timeout,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NetworkError(f"Failed to complete POST to {self.endpoint}: {e}") from e
        except (UnicodeEncodeError, ValueError) as e:
            # Headers must be ASCII; malformed URLs surface here too
            raise NetworkError(f"Failed to build request to {self.endpoint}: {e}") from e

        if response.status_code != 200:
            raise RemoteRejectedError(response.status_code, response.text)

        logger.info("Successfully sent datapoints to SignalFx", datapoint_count=len(datapoints))
        return len(datapoints)

    def close(self) -> None:
        """Release the pooled HTTP client if this transport created it"""
        if self._owns_client:
            self._client.close()
