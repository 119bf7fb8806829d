import pytest

from signlearn_server.core.exceptions import ValidationError
from signlearn_server.core.service.payment_verification.request_validator import validate_verification_request


def valid_payload(**overrides):
    payload = {
        "reference": "intermediate-1-1736937000000",
        "lessonId": "intermediate-1",
        "email": "Learner@Example.com",
        "amount": 1000,
    }
    payload.update(overrides)
    return payload


def violated_fields(exc_info):
    return {v["field"] for v in exc_info.value.violations}


class TestValidateVerificationRequest:
    """Test suite for validate_verification_request."""

    def test_valid_payload(self):
        request = validate_verification_request(valid_payload())
        assert request.reference == "intermediate-1-1736937000000"
        assert request.lesson_id == "intermediate-1"
        assert request.email == "Learner@Example.com"
        assert request.amount_minor_units == 1000

    def test_reports_every_violation(self):
        """A negative amount and an empty lessonId are both reported."""
        with pytest.raises(ValidationError) as exc_info:
            validate_verification_request(valid_payload(amount=-5, lessonId=""))
        assert violated_fields(exc_info) == {"amount", "lessonId"}

    def test_missing_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_verification_request({})
        assert violated_fields(exc_info) == {"reference", "lessonId", "email", "amount"}

    @pytest.mark.parametrize("amount", [0, -100, 10.0, 9.99, "1000", True, None])
    def test_rejects_non_positive_or_non_integer_amount(self, amount):
        with pytest.raises(ValidationError) as exc_info:
            validate_verification_request(valid_payload(amount=amount))
        assert violated_fields(exc_info) == {"amount"}

    @pytest.mark.parametrize("reference", ["", "ref'; drop table", "ref/../../x", "a" * 201])
    def test_rejects_bad_reference(self, reference):
        with pytest.raises(ValidationError) as exc_info:
            validate_verification_request(valid_payload(reference=reference))
        assert violated_fields(exc_info) == {"reference"}

    def test_accepts_reference_at_length_limit(self):
        request = validate_verification_request(valid_payload(reference="a" * 200))
        assert len(request.reference) == 200

    @pytest.mark.parametrize("lesson_id", [
        "intermediate", "expert-1", "intermediate_1", "intermediate-", "-1", "intermediate-abc", "advanced-1-2",
    ])
    def test_rejects_bad_lesson_id(self, lesson_id):
        with pytest.raises(ValidationError) as exc_info:
            validate_verification_request(valid_payload(lessonId=lesson_id))
        assert violated_fields(exc_info) == {"lessonId"}

    def test_custom_levels(self):
        request = validate_verification_request(valid_payload(lessonId="expert-3"), levels=["expert"])
        assert request.lesson_id == "expert-3"

    @pytest.mark.parametrize("email", ["", "not-an-email", "user@", "user@domain", "a b@c.com"])
    def test_rejects_bad_email(self, email):
        with pytest.raises(ValidationError) as exc_info:
            validate_verification_request(valid_payload(email=email))
        assert violated_fields(exc_info) == {"email"}

    def test_rejects_non_object_body(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_verification_request(["reference", "lessonId"])
        assert violated_fields(exc_info) == {"body"}

    def test_detail_lists_violations(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_verification_request(valid_payload(amount=0))
        detail = exc_info.value.to_detail()
        assert detail["error"] == "Invalid verification request"
        assert detail["violations"][0]["field"] == "amount"
