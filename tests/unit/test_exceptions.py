from alert_suppression.exceptions import (
    ApplicationError,
    AuditWriteError,
    ConfigLoadError,
    EvaluationError,
    StoreError,
)


def test_default_messages():
    assert str(StoreError()) == "Suppression store operation failed"
    assert str(AuditWriteError()) == "Failed to write suppression audit record"
    assert str(EvaluationError()) == "Suppression check evaluation failed"


def test_context_attributes_are_stored():
    err = EvaluationError("bad rule", rule_id="r1", check="custom_rules")

    assert str(err) == "bad rule"
    assert err.rule_id == "r1"
    assert err.check == "custom_rules"


def test_hierarchy():
    assert issubclass(ConfigLoadError, StoreError)
    assert issubclass(AuditWriteError, StoreError)
    assert issubclass(StoreError, ApplicationError)
    assert issubclass(EvaluationError, ApplicationError)
