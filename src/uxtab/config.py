import attrs

__all__ = ["Config"]


@attrs.frozen
class Config:
    """Evaluation and export settings of a tabulated function."""

    extrapolate: bool = False
    """
    Default evaluation mode when no explicit `extrapolate` flag is given.

    When False, evaluating a point outside the tabulated domain raises `OutOfRangeError`.
    When True, the outermost intervals are extended linearly.
    """
    export_refinement: int = attrs.field(
        default=3,
        validator=attrs.validators.and_(
            attrs.validators.instance_of(int), attrs.validators.ge(1)
        ),
    )
    """
    Number of grid steps per sample interval used by the diagnostic export.

    The exported grid has `export_refinement * num_x + 1` scanlines with
    `export_refinement * max(num_y) + 1` points each.
    """
    log_extrapolation: bool = True
    """Whether to emit debug records for points evaluated outside the tabulated domain."""
