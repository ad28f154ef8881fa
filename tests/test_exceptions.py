from pyparkcharge.exceptions import (
    AuthError,
    ConfigError,
    ConflictError,
    InfraError,
    NetworkError,
    NotFoundError,
    PyParkChargeError,
    StoreError,
    ValidationError,
    user_message_for,
)


def test_error_defaults() -> None:
    exc = PyParkChargeError("base error")
    assert exc.error_type == "unknown"
    assert exc.error_code is None
    assert exc.detail == "base error"
    assert exc.user_message is None


def test_error_detail_fallback() -> None:
    exc = StoreError(detail="short detail")
    assert str(exc) == "short detail"
    assert exc.detail == "short detail"
    assert exc.error_code == "store_error"


def test_error_overrides() -> None:
    exc = NetworkError(
        "network down",
        error_code="network_timeout",
        detail="timeout talking to store",
        user_message="Network issue. Please try again later.",
    )
    assert exc.error_type == "network"
    assert exc.error_code == "network_timeout"
    assert exc.detail == "timeout talking to store"
    assert user_message_for(exc) == "Network issue. Please try again later."


def test_error_types_have_codes() -> None:
    assert ValidationError("nope").error_code == "validation_error"
    assert ConflictError("nope").error_code == "conflict"
    assert NotFoundError("nope").error_code == "not_found"
    assert InfraError("nope").error_code == "infra_error"
    assert NetworkError("nope").error_code == "network_error"
    assert AuthError("nope").error_code == "auth_error"
    assert StoreError("nope").error_code == "store_error"
    assert ConfigError("nope").error_code == "config_error"


def test_infra_errors_share_a_base() -> None:
    for error_cls in (NetworkError, AuthError, StoreError):
        assert issubclass(error_cls, InfraError)
    assert not issubclass(ConflictError, InfraError)
    assert not issubclass(NotFoundError, InfraError)


def test_user_messages_distinguish_error_kinds() -> None:
    messages = {
        user_message_for(ValidationError("x")),
        user_message_for(ConflictError("x")),
        user_message_for(StoreError("x")),
    }
    assert len(messages) == 3
    assert "different time" in user_message_for(ConflictError("x"))
    assert "try again later" in user_message_for(NetworkError("x"))
