import argparse
from dataclasses import dataclass

from .geometry import DISTANCE_FUNCTIONS, DistanceFunction


@dataclass
class StationaryConfig:
    """Configuration for the stationary CLI."""

    time_bound: float
    dist_bound: float
    distance_method: str = "haversine"
    strict: bool = False
    map_buffer: float = 10.0
    log_level: str = "WARNING"
    metrics: bool = False

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "StationaryConfig":
        return cls(
            time_bound=args.time_bound,
            dist_bound=args.dist_bound,
            distance_method=args.distance,
            strict=args.strict,
            map_buffer=args.map_buffer,
            log_level=args.log_level,
            metrics=args.metrics,
        )

    def validate(self) -> None:
        """
        Check the thresholds and distance method.

        Raises:
            ValueError: If time_bound is not positive, dist_bound is negative,
                or the distance method is unknown
        """
        if not self.time_bound > 0:
            raise ValueError(f"Time bound must be positive, got {self.time_bound}")
        if not self.dist_bound >= 0:
            raise ValueError(
                f"Distance bound must be non-negative, got {self.dist_bound}"
            )
        if self.distance_method not in DISTANCE_FUNCTIONS:
            raise ValueError(f"Unknown distance method: {self.distance_method}")

    @property
    def distance(self) -> DistanceFunction:
        return DISTANCE_FUNCTIONS[self.distance_method]
