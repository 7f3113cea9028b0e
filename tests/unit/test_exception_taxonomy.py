"""Tests for the unified exception taxonomy.

Validates:
- PipelineError hierarchy and structured attributes
- Category classification (validation, transient, permanent, contract)
- ``to_error_dict()`` produces stable payload keys
- Ingestion errors map onto the per-URL skip / batch abort split
"""

from __future__ import annotations

from typing import ClassVar

from kml_mapsite.core.config import ConfigValidationError
from kml_mapsite.core.exceptions import (
    ContractError,
    DecodeError,
    FetchError,
    InvalidUrlError,
    PermanentError,
    PipelineError,
    TransientError,
    ValidationError,
    WriteError,
)
from kml_mapsite.models.image import ModelValidationError
from kml_mapsite.orchestrators.map_pipeline import FeatureContractError


class TestPipelineErrorBase:
    """PipelineError base class behavior."""

    def test_default_attributes(self) -> None:
        err = PipelineError("boom")
        assert err.message == "boom"
        assert err.stage == ""
        assert err.code == ""
        assert err.retryable is False
        assert err.correlation_id == ""

    def test_custom_attributes(self) -> None:
        err = PipelineError(
            "fail",
            stage="fetch_image",
            code="IMAGE_FETCH_FAILED",
            retryable=True,
            correlation_id="run-7",
        )
        assert err.stage == "fetch_image"
        assert err.code == "IMAGE_FETCH_FAILED"
        assert err.retryable is True
        assert err.correlation_id == "run-7"

    def test_str_is_message(self) -> None:
        assert str(PipelineError("human-readable error")) == "human-readable error"

    def test_to_error_dict_keys(self) -> None:
        err = PipelineError("x", stage="s", code="C", retryable=True, correlation_id="id")
        assert err.to_error_dict() == {
            "category": "transient",
            "code": "C",
            "stage": "s",
            "message": "x",
            "retryable": True,
            "correlation_id": "id",
        }

    def test_uncategorised_falls_back_to_retryable_flag(self) -> None:
        assert PipelineError("x").category == "permanent"
        assert PipelineError("x", retryable=True).category == "transient"


class TestCategories:
    def test_validation_never_retryable(self) -> None:
        err = ValidationError("bad input")
        assert err.category == "validation"
        assert err.retryable is False

    def test_transient_retryable_by_default(self) -> None:
        err = TransientError("timeout")
        assert err.category == "transient"
        assert err.retryable is True

    def test_permanent_not_retryable(self) -> None:
        err = PermanentError("gone")
        assert err.category == "permanent"
        assert err.retryable is False

    def test_contract_category_wins(self) -> None:
        assert ContractError("drift").category == "contract"


class TestIngestionErrors:
    """Per-URL errors and the batch-fatal write error."""

    def test_invalid_url(self) -> None:
        err = InvalidUrlError("Not an absolute http(s) URL: ''")
        assert err.category == "validation"
        assert err.code == "INVALID_IMAGE_URL"
        assert err.stage == "resolve_image"

    def test_fetch_error_carries_url_and_status(self) -> None:
        err = FetchError("https://x.org/a.png", "HTTP 404 fetching", status_code=404)
        assert err.url == "https://x.org/a.png"
        assert err.status_code == 404
        assert err.category == "transient"
        assert err.retryable is True
        assert err.to_error_dict()["code"] == "IMAGE_FETCH_FAILED"

    def test_fetch_error_without_response(self) -> None:
        assert FetchError("https://x.org/a.png", "Timed out").status_code is None

    def test_decode_error(self) -> None:
        err = DecodeError("Not a decodable image")
        assert err.category == "permanent"
        assert err.stage == "transcode_image"

    def test_write_error_carries_path(self) -> None:
        err = WriteError("/img/abc.jpg", "No space left on device")
        assert err.path == "/img/abc.jpg"
        assert err.category == "permanent"
        assert err.code == "IMAGE_WRITE_FAILED"


class TestAllErrorsArePipelineErrors:
    """Every domain exception can be handled through ``PipelineError``."""

    EXCEPTIONS: ClassVar[list[PipelineError]] = [
        InvalidUrlError("x"),
        FetchError("u", "x"),
        DecodeError("x"),
        WriteError("p", "x"),
        ConfigValidationError("K", 1, "x"),
        ModelValidationError("M", "f", 1, "x"),
        FeatureContractError("x"),
    ]

    def test_subclass_of_pipeline_error(self) -> None:
        for exc in self.EXCEPTIONS:
            assert isinstance(exc, PipelineError), type(exc).__name__

    def test_every_error_has_code_and_stage(self) -> None:
        for exc in self.EXCEPTIONS:
            assert exc.code, type(exc).__name__
            assert exc.stage, type(exc).__name__

    def test_feature_contract_error_category(self) -> None:
        assert FeatureContractError("x").category == "contract"

    def test_model_validation_error_is_value_error(self) -> None:
        assert isinstance(ModelValidationError("M", "f", 1, "x"), ValueError)
