"""The primary user-facing entry point for case generation.

`CaseGenerator` wires the pipeline stages together: classify, compile,
execute (through the breaker and governor, against the completion service or
the mock responder), then extract. Every failure propagates to the caller as
one of the typed errors in `casegen.exceptions`.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
import dataclasses
import logging
import time
from types import TracebackType
from typing import TYPE_CHECKING, Any, Self

from pydantic import ValidationError as PydanticValidationError

from casegen.config import (
    CasegenSettings,
    FrozenConfig,
    ResolvedConfig,
    resolve_config,
)
from casegen.core.profiles import get_profile
from casegen.core.types import GenerationRequest, GenerationResult
from casegen.exceptions import ConfigurationError, UpstreamThrottled
from casegen.pipeline.adapters import ChatCompletionsAdapter
from casegen.pipeline.circuit_breaker import CircuitBreaker
from casegen.pipeline.classifier import classify
from casegen.pipeline.extraction import ResponseExtractor
from casegen.pipeline.mock_responder import MockResponder
from casegen.pipeline.prompt_compiler import PromptCompiler
from casegen.pipeline.quota import QuotaSnapshot, QuotaState, get_process_quota
from casegen.pipeline.rate_governor import Clock, RateGovernor, Sleep
from casegen.pipeline.retry import RetryOrchestrator
from casegen.telemetry import TelemetryContext

if TYPE_CHECKING:
    from casegen.core.types import CompletionPayload
    from casegen.pipeline.adapters import CompletionAdapter
    from casegen.telemetry import TelemetryContextProtocol

log = logging.getLogger(__name__)


class CaseGenerator:
    """Turns generation requests into structured values.

    Mock mode applies when no credential is configured or `debug_mock` is
    set; the mock reply still passes through the breaker, the governor and
    the extractor.
    """

    def __init__(
        self,
        config: FrozenConfig,
        *,
        quota: QuotaState | None = None,
        adapter: CompletionAdapter | None = None,
        mock: MockResponder | None = None,
        extractor: ResponseExtractor | None = None,
        telemetry: TelemetryContextProtocol | None = None,
        clock: Clock = time.time,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if config.use_real_api and not config.credential_present:
            raise ConfigurationError(
                "use_real_api is set but no API key is configured. "
                "Set CASEGEN_API_KEY or TOGETHER_API_KEY."
            )
        self.config = config
        self.quota = quota if quota is not None else get_process_quota()
        self.governor = RateGovernor(
            self.quota,
            max_requests_per_minute=config.max_requests_per_minute,
            min_delay_ms=config.min_delay_ms,
            daily_cap=config.daily_cap,
            safety_buffer_ms=config.safety_buffer_ms,
            clock=clock,
            sleep=sleep,
        )
        self.breaker = CircuitBreaker(
            self.quota,
            max_consecutive_throttle_errors=config.max_consecutive_throttle_errors,
            cooldown_ms=config.cooldown_ms,
            clock=clock,
        )
        self.orchestrator = RetryOrchestrator(
            self.breaker, self.governor, deadline_s=config.call_deadline_s
        )
        self.compiler = PromptCompiler(config.model)
        self.extractor = extractor or ResponseExtractor()
        self.mock = mock or MockResponder(delay_ms=config.mock_delay_ms, sleep=sleep)
        self._adapter = adapter
        self._owns_adapter = adapter is None
        self._telemetry: TelemetryContextProtocol = telemetry or TelemetryContext()

    @property
    def mock_mode(self) -> bool:
        return self.config.mock_mode

    def quota_snapshot(self) -> QuotaSnapshot:
        return self.governor.snapshot()

    def _get_adapter(self) -> CompletionAdapter:
        if self._adapter is None:
            # Only reached outside mock mode, where a credential is present.
            self._adapter = ChatCompletionsAdapter(
                api_key=self.config.api_key or "",
                base_url=self.config.base_url,
                timeout_s=self.config.request_timeout_s,
            )
        return self._adapter

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Run one request through the pipeline.

        Raises:
            RateLimitExceeded: The circuit is open or the daily cap is reached.
            UpstreamThrottled: The completion service throttled the call.
            UpstreamError: Any other failed upstream call, including timeouts.
            ExtractionFailure: No structured value could be recovered.
        """
        tele = self._telemetry
        cid = request.correlation_id
        start = time.perf_counter()
        use_mock = self.mock_mode

        with tele("generator.generate", correlation_id=cid):
            with tele("classify"):
                if request.task_profile is not None:
                    profile_name = request.task_profile
                    log.debug("[%s] Using requested profile %s", cid, profile_name.value)
                else:
                    profile_name = classify(request.prompt, request.schema)
                    log.debug("[%s] Classified as %s", cid, profile_name.value)
                profile = get_profile(profile_name)

            with tele("compile"):
                payload = self.compiler.compile(request, profile)

            log.info(
                "[%s] Generating with profile %s (%s)",
                cid,
                profile.name.value,
                "mock" if use_mock else self.config.model,
            )
            with tele("execute", mock=use_mock):
                raw = await self._execute(request, payload, use_mock=use_mock)

            with tele("extract"):
                outcome = self.extractor.extract_with_details(raw, request.schema)
            tele.count(f"strategy.{outcome.strategy}")

        duration = time.perf_counter() - start
        log.info(
            "[%s] Generation finished in %.2fs via %s", cid, duration, outcome.strategy
        )
        return GenerationResult(
            value=outcome.value,
            profile=profile.name,
            strategy=outcome.strategy,
            correlation_id=cid,
            used_mock=use_mock,
            duration_s=duration,
        )

    async def _execute(
        self,
        request: GenerationRequest,
        payload: CompletionPayload,
        *,
        use_mock: bool,
    ) -> str:
        if use_mock:
            self._telemetry.count("mock_responses")
            return await self.orchestrator.execute(lambda: self.mock.respond(request))

        adapter = self._get_adapter()
        try:
            return await self.orchestrator.execute(lambda: adapter.complete(payload))
        except UpstreamThrottled:
            self._telemetry.count("throttled")
            raise

    def generate_sync(self, request: GenerationRequest) -> GenerationResult:
        """Run `generate` on a fresh event loop for synchronous callers.

        The HTTP client is bound to that loop, so it is closed before the loop
        ends; a later call opens a new one.
        """

        async def run() -> GenerationResult:
            try:
                return await self.generate(request)
            finally:
                await self.aclose()

        return asyncio.run(run())

    async def aclose(self) -> None:
        """Close the HTTP client this generator opened, if any."""
        if self._owns_adapter and self._adapter is not None:
            adapter, self._adapter = self._adapter, None
            await adapter.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()


def create_generator(
    config: FrozenConfig | ResolvedConfig | None = None,
    *,
    quota: QuotaState | None = None,
    telemetry: TelemetryContextProtocol | None = None,
    **overrides: Any,
) -> CaseGenerator:
    """Create a generator with resolved configuration.

    Args:
        config: A resolved or frozen configuration. When omitted, configuration
            is resolved from the environment and config files.
        quota: Quota state to use instead of the process-wide instance.
        telemetry: Telemetry context for stage timings and counters.
        **overrides: Configuration fields to override, e.g. `debug_mock=True`.

    Raises:
        ConfigurationError: If the configuration is invalid, or `use_real_api`
            is set without a credential.
    """
    if config is None:
        frozen = resolve_config(overrides or None).to_frozen()
    elif isinstance(config, ResolvedConfig):
        frozen = _revalidate(config.with_overrides(**overrides).values)
    else:
        unknown = set(overrides) - {f.name for f in dataclasses.fields(config)}
        if unknown:
            raise ConfigurationError(f"Unknown configuration fields: {sorted(unknown)}")
        frozen = _revalidate({**dataclasses.asdict(config), **overrides})
    return CaseGenerator(frozen, quota=quota, telemetry=telemetry)


def _revalidate(values: Mapping[str, Any]) -> FrozenConfig:
    # Overrides on an already resolved config get the same bounds as resolution.
    try:
        settings = CasegenSettings.model_validate(dict(values))
    except PydanticValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e
    return FrozenConfig(**settings.to_dict())
