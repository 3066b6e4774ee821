"""Feature modules."""
from loan_te.features.encoders import (
    EncodingMap,
    HoldoutType,
    TargetEncoder,
    apply_map,
    build_map,
)
