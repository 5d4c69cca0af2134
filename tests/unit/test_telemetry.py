"""Telemetry context behaviour with and without the enabling flag."""

import pytest

from casegen.telemetry import SimpleReporter, TelemetryContext, TelemetryReporter


@pytest.mark.unit
def test_disabled_context_is_a_shared_no_op():
    reporter = SimpleReporter()
    first = TelemetryContext(reporter)
    second = TelemetryContext()

    assert first is second
    with first("outer"):
        first.count("things")
    assert reporter.timings == {}
    assert reporter.metrics == {}


@pytest.mark.unit
def test_enabled_without_reporters_is_still_no_op(monkeypatch):
    monkeypatch.setenv("CASEGEN_TELEMETRY", "1")

    assert TelemetryContext() is TelemetryContext()


@pytest.mark.unit
def test_nested_scopes_record_dotted_paths(monkeypatch):
    monkeypatch.setenv("CASEGEN_TELEMETRY", "1")
    reporter = SimpleReporter()
    tele = TelemetryContext(reporter)

    with tele("generator.generate"):
        with tele("classify"):
            pass
        with tele("extract"):
            tele.count("strategy.direct")

    assert set(reporter.timings) == {
        "generator.generate",
        "generator.generate.classify",
        "generator.generate.extract",
    }
    _, meta = reporter.timings["generator.generate.classify"][0]
    assert meta["depth"] == 1
    assert meta["parent_scope"] == "generator.generate"
    assert meta["failed"] is False
    value, meta = reporter.metrics["generator.generate.extract.strategy.direct"][0]
    assert value == 1
    assert meta["metric_type"] == "counter"


@pytest.mark.unit
def test_failed_scope_is_flagged_and_error_propagates(monkeypatch):
    monkeypatch.setenv("DEBUG", "1")
    reporter = SimpleReporter()
    tele = TelemetryContext(reporter)

    with pytest.raises(RuntimeError), tele("execute"):
        raise RuntimeError("boom")

    _, meta = reporter.timings["execute"][0]
    assert meta["failed"] is True


@pytest.mark.unit
def test_broken_reporter_does_not_break_the_caller(monkeypatch, caplog):
    monkeypatch.setenv("CASEGEN_TELEMETRY", "1")

    class Broken:
        def record_timing(self, scope, duration, **metadata):
            raise RuntimeError("reporter down")

        def record_metric(self, scope, value, **metadata):
            raise RuntimeError("reporter down")

    good = SimpleReporter()
    tele = TelemetryContext(Broken(), good)
    with tele("compile"):
        pass

    assert "compile" in good.timings
    assert "Telemetry reporter 'Broken' failed" in caplog.text


@pytest.mark.unit
def test_empty_scope_name_is_rejected(monkeypatch):
    monkeypatch.setenv("CASEGEN_TELEMETRY", "1")
    tele = TelemetryContext(SimpleReporter())

    with pytest.raises(ValueError), tele(""):
        pass


@pytest.mark.unit
def test_report_lists_scopes_and_metrics(monkeypatch):
    monkeypatch.setenv("CASEGEN_TELEMETRY", "1")
    reporter = SimpleReporter()
    assert isinstance(reporter, TelemetryReporter)
    tele = TelemetryContext(reporter)

    with tele("generator.generate"), tele("execute"):
        tele.count("mock_responses")

    report = reporter.get_report()
    assert "=== Telemetry Report ===" in report
    assert "execute" in report
    assert "generator.generate.execute.mock_responses" in report
