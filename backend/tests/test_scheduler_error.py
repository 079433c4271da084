from slotforge.core.exceptions import AppError, ConfigurationError, GenerationCancelledError, SchedulerError


def test_scheduler_error_structure():
    err = SchedulerError(message="Test error", details={"foo": "bar"})
    assert err.status_code == 400
    assert err.message == "Test error"
    assert err.details == {"foo": "bar"}
    assert isinstance(err, AppError)


def test_app_error_defaults():
    err = AppError("Generic error")
    assert err.status_code == 500
    assert err.details == {}


def test_cancellation_error_carries_phase():
    err = GenerationCancelledError("greedy_placement")
    assert isinstance(err, SchedulerError)
    assert err.status_code == 409
    assert err.phase == "greedy_placement"
    assert "greedy_placement" in err.message


def test_configuration_error_is_server_side():
    assert ConfigurationError("bad env").status_code == 500
