"""
Tests for the exception hierarchy.
"""

from core.exceptions import (
    ActivationError,
    BackingStoreError,
    ConfigurationError,
    ErrorClassification,
    InvalidConfigError,
    MissingConfigError,
    SchedulerError,
    Severity,
    ShutdownError,
    classify_exception,
)


class TestHierarchy:

    def test_backing_store_error_is_critical_configuration_error(self):
        error = BackingStoreError("disk gone", location="/etc/decorators.yaml")

        assert isinstance(error, ConfigurationError)
        assert error.severity == Severity.CRITICAL
        assert not error.is_recoverable
        assert error.location == "/etc/decorators.yaml"
        assert error.context == {"location": "/etc/decorators.yaml"}

    def test_activation_error_is_recoverable(self):
        error = ActivationError(
            "Can't configure section: bikes",
            section="bikes",
            component_type="bike-rental",
            cause=ValueError("bad url"),
        )

        assert error.is_recoverable
        assert error.context == {
            "section": "bikes",
            "component_type": "bike-rental",
            "cause_type": "ValueError",
            "cause_message": "bad url",
        }

    def test_missing_config_names_the_section(self):
        error = MissingConfigError("url", section="bikes")

        assert str(error) == "Missing required key 'url' in section 'bikes'"
        assert error.section == "bikes"
        assert error.key == "url"
        assert str(MissingConfigError("url")) == "Missing required key 'url' in configuration"

    def test_invalid_config_keeps_value_and_reason(self):
        error = InvalidConfigError("frequencySec", -1, "must be positive", section="bikes")

        assert str(error) == "Invalid value for 'frequencySec': -1 (must be positive)"
        assert error.value == -1
        assert error.context == {
            "value": "-1",
            "reason": "must be positive",
            "section": "bikes",
            "key": "frequencySec",
        }

    def test_shutdown_and_scheduler_errors_carry_context(self):
        assert ShutdownError("failed", step="shutdown_coordinator").context == {
            "step": "shutdown_coordinator"
        }
        assert SchedulerError("duplicate", task_name="bikes").context == {"task_name": "bikes"}


class TestFormatting:

    def test_to_log_format(self):
        error = ActivationError("Can't configure section: bikes", section="bikes")

        assert error.to_log_format() == (
            "[HIGH] ActivationError: Can't configure section: bikes | section=bikes"
        )

    def test_to_log_format_without_context(self):
        assert SchedulerError("stopped").to_log_format() == "[MEDIUM] SchedulerError: stopped"

    def test_to_dict(self):
        error = BackingStoreError("disk gone", cause=OSError("io"))

        data = error.to_dict()

        assert data["type"] == "BackingStoreError"
        assert data["severity"] == "critical"
        assert data["classification"] == "non_recoverable"
        assert data["cause"] == "io"
        assert data["context"]["cause_type"] == "OSError"


class TestClassification:

    def test_network_errors_are_transient(self):
        assert classify_exception(ConnectionError()) == ErrorClassification.TRANSIENT
        assert classify_exception(TimeoutError()) == ErrorClassification.TRANSIENT

    def test_plain_errors_are_recoverable(self):
        assert classify_exception(ValueError()) == ErrorClassification.RECOVERABLE
        assert classify_exception(KeyError("type")) == ErrorClassification.RECOVERABLE

    def test_memory_error_is_not_recoverable(self):
        assert classify_exception(MemoryError()) == ErrorClassification.NON_RECOVERABLE

    def test_decoration_errors_keep_their_classification(self):
        assert classify_exception(BackingStoreError("x")) == ErrorClassification.NON_RECOVERABLE
        assert classify_exception(ActivationError("x")) == ErrorClassification.RECOVERABLE
