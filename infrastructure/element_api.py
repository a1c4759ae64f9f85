# ============================================================================
# ELEMENT JSON-RPC CLIENT
# ============================================================================
# EPOCH: 1 - NODE-AWARE BACKUP SCHEDULING
# STATUS: Infrastructure - Async HTTP client for the cluster API
# PURPOSE: Implement the cluster API interfaces over Element JSON-RPC
# CREATED: 17 OCT 2026
# ============================================================================
"""
Element JSON-RPC Client

Async httpx client for the Element (SolidFire) management API.

Every call is a POST to https://<mvip>/json-rpc/<version> with HTTP basic
auth and a body of {"method": ..., "params": ..., "id": ...}. The cluster
answers {"result": ...} or {"error": {"name", "code", "message"}}.

Error mapping (all TransientRemoteError, the scheduler retries them):
- connection failure, timeout -> TransientRemoteError
- HTTP status >= 400           -> TransientRemoteError
- non-JSON / malformed body    -> TransientRemoteError
- JSON-RPC error object        -> ElementAPIError

Usage:
    async with ElementClient(ClusterConfig.from_env()) as client:
        limits = await client.get_limits()
"""

import itertools
import json
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from core.clock import Clock, SYSTEM_CLOCK
from core.config import ClusterConfig, get_defaults
from core.contracts import RemoteJobStatus
from core.errors import ElementAPIError, JobExecutionFailure, TransientRemoteError
from core.models import (
    AsyncJobStatus,
    BackupDestination,
    ClusterLimits,
    TopologyReport,
    VolumeStats,
)
from core.security import redact_params
from infrastructure.cluster_api import (
    AsyncJobAPI,
    ClusterLimitsAPI,
    ReportFetcher,
    VolumeStatsFetcher,
)

logger = logging.getLogger(__name__)


def default_timeout() -> httpx.Timeout:
    """Timeout built from TimeoutDefaults (env-overridable)."""
    t = get_defaults().timeouts
    return httpx.Timeout(
        connect=t.connect_timeout,
        read=t.read_timeout,
        write=t.write_timeout,
        pool=t.pool_timeout,
    )


class ElementClient(ClusterLimitsAPI, ReportFetcher, VolumeStatsFetcher, AsyncJobAPI):
    """Async JSON-RPC client for one Element cluster."""

    def __init__(
        self,
        config: ClusterConfig,
        timeout: Optional[httpx.Timeout] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        report_name: Optional[str] = None,
        clock: Clock = SYSTEM_CLOCK,
    ):
        """
        Initialize client.

        Args:
            config: Cluster endpoint and credentials
            timeout: httpx timeout (default from TimeoutDefaults)
            transport: Optional httpx transport (tests use MockTransport)
            report_name: Topology report to request (default slices.json)
            clock: Time source for wait_for_async_result
        """
        self._config = config
        self._report_name = report_name or get_defaults().backup.report_name
        self._clock = clock
        self._request_ids = itertools.count(1)
        self._client = httpx.AsyncClient(
            auth=httpx.BasicAuth(config.username, config.password),
            verify=config.verify_tls,
            timeout=timeout or default_timeout(),
            transport=transport,
        )

    @property
    def api_url(self) -> str:
        return self._config.api_url

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    async def __aenter__(self) -> "ElementClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # TRANSPORT
    # ------------------------------------------------------------------

    async def call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Invoke one JSON-RPC method and return its "result".

        Raises:
            ElementAPIError: the cluster returned an error object
            TransientRemoteError: the call could not be completed
        """
        params = params or {}
        payload = {"method": method, "params": params, "id": next(self._request_ids)}
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"JSON-RPC {method} -> {self.api_url} params={redact_params(params)}")

        try:
            resp = await self._client.post(self.api_url, json=payload)
        except httpx.TimeoutException as e:
            raise TransientRemoteError(f"{method} timed out: {e}", method=method) from e
        except httpx.HTTPError as e:
            raise TransientRemoteError(f"{method} request failed: {e}", method=method) from e

        if resp.status_code >= 400:
            raise TransientRemoteError(
                f"{method} returned HTTP {resp.status_code}", method=method
            )

        try:
            body = resp.json()
        except ValueError as e:
            raise TransientRemoteError(f"{method} returned a non-JSON body", method=method) from e

        if not isinstance(body, dict):
            raise TransientRemoteError(f"{method} returned an unexpected body", method=method)

        error = body.get("error")
        if error:
            if isinstance(error, dict):
                raise ElementAPIError(
                    error.get("message") or f"{method} failed",
                    method=method,
                    name=error.get("name"),
                    code=error.get("code"),
                )
            raise ElementAPIError(str(error), method=method)

        if "result" not in body:
            raise TransientRemoteError(f"{method} response has no result", method=method)

        return body["result"]

    # ------------------------------------------------------------------
    # CLUSTER LIMITS / VERSION
    # ------------------------------------------------------------------

    async def get_limits(self) -> ClusterLimits:
        """GetLimits -> bulkVolumeJobsPerNodeMax"""
        result = await self.call("GetLimits")
        try:
            return ClusterLimits.model_validate(result)
        except ValidationError as e:
            raise TransientRemoteError(f"GetLimits result malformed: {e}", method="GetLimits") from e

    async def get_cluster_version(self) -> str:
        """GetClusterVersionInfo -> clusterVersion"""
        result = await self.call("GetClusterVersionInfo")
        try:
            return str(result["clusterVersion"])
        except (KeyError, TypeError) as e:
            raise TransientRemoteError(
                "GetClusterVersionInfo result has no clusterVersion",
                method="GetClusterVersionInfo",
            ) from e

    # ------------------------------------------------------------------
    # TOPOLOGY
    # ------------------------------------------------------------------

    async def get_topology_report(self) -> TopologyReport:
        """GetReport(reportName=slices.json) -> services + slices"""
        result = await self.call("GetReport", {"reportName": self._report_name})

        # Some firmware returns the report document as a JSON string
        if isinstance(result, str):
            try:
                result = json.loads(result)
            except ValueError as e:
                raise TransientRemoteError(
                    f"Report {self._report_name} is not valid JSON", method="GetReport"
                ) from e

        try:
            return TopologyReport.model_validate(result)
        except ValidationError as e:
            raise TransientRemoteError(
                f"Report {self._report_name} malformed: {e}", method="GetReport"
            ) from e

    async def get_volume_stats(self, volume_id: int) -> VolumeStats:
        """GetVolumeStats -> volumeStats.metadataHosts.primary"""
        result = await self.call("GetVolumeStats", {"volumeID": volume_id})
        try:
            return VolumeStats.from_api(volume_id, result)
        except (KeyError, TypeError, ValueError) as e:
            raise TransientRemoteError(
                f"GetVolumeStats for volume {volume_id} has no primary metadata host",
                method="GetVolumeStats",
            ) from e

    # ------------------------------------------------------------------
    # ASYNC JOBS
    # ------------------------------------------------------------------

    async def start_job(self, volume_id: int, destination: BackupDestination) -> int:
        """StartBulkVolumeRead -> asyncHandle"""
        result = await self.call(
            "StartBulkVolumeRead", destination.to_request_params(volume_id)
        )
        try:
            return int(result["asyncHandle"])
        except (KeyError, TypeError, ValueError) as e:
            raise TransientRemoteError(
                f"StartBulkVolumeRead for volume {volume_id} returned no asyncHandle",
                method="StartBulkVolumeRead",
            ) from e

    async def get_job_status(self, async_handle: int) -> AsyncJobStatus:
        """GetAsyncResult(keepResult=true) -> status + result/error"""
        result = await self.call(
            "GetAsyncResult", {"asyncHandle": async_handle, "keepResult": True}
        )
        try:
            return AsyncJobStatus.from_api(async_handle, result)
        except (KeyError, TypeError, ValueError) as e:
            raise TransientRemoteError(
                f"GetAsyncResult for handle {async_handle} has no usable status",
                method="GetAsyncResult",
            ) from e

    async def wait_for_async_result(
        self,
        async_handle: int,
        interval_seconds: Optional[float] = None,
    ) -> AsyncJobStatus:
        """
        Poll GetAsyncResult until the job finishes.

        Query failures are treated as transient: a freshly issued handle is
        not always visible yet. Bound the wait with asyncio.wait_for or by
        cancelling the calling task.

        Returns:
            Final status when complete

        Raises:
            JobExecutionFailure: the job reported an error
        """
        if interval_seconds is None:
            interval_seconds = get_defaults().polling.async_wait_interval_seconds

        while True:
            await self._clock.sleep(interval_seconds)

            try:
                status = await self.get_job_status(async_handle)
            except TransientRemoteError as e:
                logger.warning(
                    f"GetAsyncResult transient error for handle {async_handle}: {e}; will retry"
                )
                continue

            if status.status == RemoteJobStatus.COMPLETE:
                logger.debug(f"AsyncHandle {async_handle} complete")
                return status
            if status.status == RemoteJobStatus.ERROR:
                raise JobExecutionFailure(async_handle, status.detail)

            logger.debug(f"AsyncHandle {async_handle} running...")


__all__ = ["ElementClient", "default_timeout"]
