"""
Exception types raised inside the orientation estimator.

None of these cross the sensor-callback boundary of
``OrientationEstimator``: instability is recovered locally and a degenerate
state is reported to failure listeners.
"""


class OrientationEstimatorError(Exception):
    """Base class for estimator errors."""


class NumericInstabilityError(OrientationEstimatorError):
    """Innovation covariance is singular or ill-conditioned; the correction is skipped."""


class DegenerateStateError(OrientationEstimatorError):
    """The quaternion norm collapsed towards zero; the estimate is meaningless."""
