import logging

from btaml_core.logging import (
    LOG_FORMAT,
    CorrelationIdFilter,
    UTCFormatter,
    correlation_id,
    scoped_correlation_id,
    setup_logging,
)


def _record(message: str = "hello") -> logging.LogRecord:
    record = logging.LogRecord(
        name="btaml.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    CorrelationIdFilter().filter(record)
    return record


class TestFormatting:
    def test_without_correlation_id(self):
        """No trace prefix is rendered outside a scoped id."""
        formatter = UTCFormatter("%(trace_str)s%(message)s")
        assert formatter.format(_record()) == "hello"

    def test_with_correlation_id(self):
        """The active correlation id prefixes the message."""
        formatter = UTCFormatter("%(trace_str)s%(message)s")
        with scoped_correlation_id("req-1"):
            assert formatter.format(_record()) == "[req-1] hello"

    def test_utc_timestamp(self):
        """Timestamps carry milliseconds and the UTC designator."""
        stamp = UTCFormatter("%(asctime)s").format(_record())
        assert stamp.endswith("Z")
        assert stamp[-5] == "."

    def test_filter_keeps_every_record(self):
        assert CorrelationIdFilter().filter(_record()) is True


class TestCorrelationScope:
    def test_scope_resets_value(self):
        """The previous value is restored when the block exits."""
        assert correlation_id.get() is None
        with scoped_correlation_id("outer"):
            with scoped_correlation_id("inner"):
                assert correlation_id.get() == "inner"
            assert correlation_id.get() == "outer"
        assert correlation_id.get() is None


class TestSetupLogging:
    def test_namespace_logger_configured(self, tmp_path):
        """A namespace gets a console and a file handler and stops propagating."""
        log_file = tmp_path / "logs" / "btaml.log"
        logger = setup_logging("debug", log_file, namespace="btaml_test_ns")
        assert logger is logging.getLogger("btaml_test_ns")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        assert logger.propagate is False

        with scoped_correlation_id("req-9"):
            logging.getLogger("btaml_test_ns.child").info("written")
        for handler in logger.handlers:
            handler.flush()
        line = log_file.read_text(encoding="utf-8")
        assert "[req-9] btaml_test_ns.child: written" in line
        assert "%(trace_str)s" in LOG_FORMAT

        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    def test_reconfigure_does_not_duplicate(self):
        """Calling setup twice leaves a single console handler."""
        setup_logging(namespace="btaml_test_dup")
        logger = setup_logging("nonsense", namespace="btaml_test_dup")
        assert len(logger.handlers) == 1
        assert logger.level == logging.INFO
        logger.handlers.clear()
