"""
Plain data types shared by the detector, the slicing engine and the task queue.
"""
import math
from dataclasses import dataclass


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class GridSpec:
    """Number of rows and columns a source image is divided into."""
    rows: int
    cols: int

    @property
    def cell_count(self) -> int:
        return self.rows * self.cols

    @classmethod
    def coerced(cls, rows, cols) -> 'GridSpec':
        """Build a grid with both dimensions clamped to at least 1."""
        return cls(max(1, int(rows)), max(1, int(cols)))


@dataclass(frozen=True)
class AspectRatio:
    """Target width:height ratio; components are not required to be coprime."""
    w: int
    h: int

    @property
    def value(self) -> float:
        return self.w / self.h

    @classmethod
    def coerced(cls, w, h) -> 'AspectRatio':
        return cls(max(1, int(w)), max(1, int(h)))

    def __str__(self) -> str:
        return f"{self.w}:{self.h}"


@dataclass(frozen=True)
class NamingContext:
    """Strings passed through verbatim into every output file name."""
    image_name: str
    task_id: str
    project_id: str
    scene_id: str


@dataclass(frozen=True)
class SliceResult:
    """One rendered and encoded shot."""
    index: int
    data: bytes
    width: int
    height: int
    name: str

    @property
    def shot_number(self) -> int:
        return self.index + 1


@dataclass
class ProjectConfig:
    """Global slicing parameters shared by every task in a batch."""
    project_id: str = "PRJ"
    scene_id: str = "SC01"
    rows: int = 3
    cols: int = 3
    aspect_w: int = 16
    aspect_h: int = 9

    @property
    def grid(self) -> GridSpec:
        return GridSpec.coerced(self.rows, self.cols)

    @property
    def ratio(self) -> AspectRatio:
        return AspectRatio.coerced(self.aspect_w, self.aspect_h)

    def to_dict(self) -> dict:
        return {
            'project_id': self.project_id,
            'scene_id': self.scene_id,
            'rows': self.rows,
            'cols': self.cols,
            'aspect_w': self.aspect_w,
            'aspect_h': self.aspect_h,
        }

    @staticmethod
    def from_dict(data: dict) -> 'ProjectConfig':
        defaults = ProjectConfig()
        return ProjectConfig(
            project_id=str(data.get('project_id', defaults.project_id)),
            scene_id=str(data.get('scene_id', defaults.scene_id)),
            rows=max(1, int(data.get('rows', defaults.rows))),
            cols=max(1, int(data.get('cols', defaults.cols))),
            aspect_w=max(1, int(data.get('aspect_w', defaults.aspect_w))),
            aspect_h=max(1, int(data.get('aspect_h', defaults.aspect_h))),
        )
