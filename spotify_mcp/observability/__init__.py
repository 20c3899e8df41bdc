# noqa: D104 - package initialization
from .logging import configure_structured_logging  # noqa: F401
from .metrics import (  # noqa: F401
    metrics_blueprint,
    record_feature_batch,
    record_provider_error,
    record_recommendation,
)
