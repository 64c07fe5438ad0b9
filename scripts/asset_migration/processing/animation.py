"""
Animation clip assembly from ordered sprite frames.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .directions import ROW_DIRECTIONS, map_direction
from .slicer import SpriteFrame, SpriteAlignment, parse_frame_name, PIVOTS
from .classifier import IMAGE_EXTENSIONS
from ..utils.image import ImageUtils
from ..utils.fileio import atomic_write_json


logger = logging.getLogger(__name__)

DEFAULT_FRAME_RATE = 12.0
CLIP_EXTENSION = ".anim"
LOOPING_LABELS = ("idle", "walk", "run")


@dataclass(frozen=True)
class FrameRef:
    """A sprite frame tagged with its animation label, direction and index."""
    label: str
    direction: str
    index: int
    path: str
    frame: SpriteFrame
    native: bool = False


def _require_str(data: Dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"'{key}' must be a string, got {type(value).__name__}")
    return value


@dataclass
class AnimationClip:
    """A playable sequence of frames."""
    name: str
    frame_rate: float
    loop: bool
    frames: List[FrameRef] = field(default_factory=list)
    label: str = ""
    direction: str = ""
    mirror: bool = False
    valid: bool = True

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    @property
    def duration(self) -> float:
        """Clip length in seconds; every frame is shown for 1/frame_rate."""
        if not self.frames or self.frame_rate <= 0:
            return 0.0
        return len(self.frames) / self.frame_rate

    def keyframes(self) -> List[Tuple[float, FrameRef]]:
        """(time, frame) pairs; frame i fires at i / frame_rate."""
        return [(index / self.frame_rate, frame) for index, frame in enumerate(self.frames)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "label": self.label,
            "direction": self.direction,
            "frame_rate": self.frame_rate,
            "loop": self.loop,
            "mirror": self.mirror,
            "valid": self.valid,
            "length": self.duration,
            "frames": [
                {
                    "time": time,
                    "sprite": ref.path,
                    "name": ref.frame.name,
                    "rect": list(ref.frame.rect),
                    "pivot": list(ref.frame.pivot),
                    "source_direction": ref.direction,
                }
                for time, ref in self.keyframes()
            ],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnimationClip":
        """
        Rebuild a clip from its serialized form.

        Raises:
            ValueError: If required fields are missing or malformed
        """
        try:
            frames = []
            for index, entry in enumerate(data.get("frames", [])):
                name = _require_str(entry, "name")
                sprite = _require_str(entry, "sprite")
                frame = SpriteFrame(
                    name=name,
                    rect=tuple(entry.get("rect", (0, 0, 0, 0))),
                    pivot=tuple(entry.get("pivot", PIVOTS[SpriteAlignment.CENTER])),
                    alignment=SpriteAlignment.CENTER,
                    column=index,
                )
                frames.append(FrameRef(data.get("label", ""), entry.get("source_direction", data.get("direction", "")),
                                       index, sprite, frame))
            return cls(
                name=_require_str(data, "name"),
                frame_rate=float(data["frame_rate"]),
                loop=bool(data.get("loop", False)),
                frames=frames,
                label=data.get("label", ""),
                direction=data.get("direction", ""),
                mirror=bool(data.get("mirror", False)),
                valid=bool(data.get("valid", True)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Malformed animation clip: {e}")


class LoopPolicy:
    """Decides whether an animation label loops."""

    def __init__(self, looping_labels: Iterable[str] = LOOPING_LABELS):
        self.looping_labels = frozenset(label.lower() for label in looping_labels)

    def __call__(self, label: str) -> bool:
        return label.lower() in self.looping_labels


@dataclass
class ClipSet:
    """Clips assembled for one character."""
    character: str
    clips: Dict[Tuple[str, str], AnimationClip] = field(default_factory=dict)
    notes: List[str] = field(default_factory=list)

    @property
    def labels(self) -> List[str]:
        return sorted({label for label, _ in self.clips})

    def get(self, label: str, direction: str) -> Optional[AnimationClip]:
        return self.clips.get((label, direction))

    def for_label(self, label: str) -> Dict[str, AnimationClip]:
        return {direction: clip for (clip_label, direction), clip in self.clips.items() if clip_label == label}


class AnimationAssembler:
    """Groups ordered frames into clips and stamps timing."""

    def __init__(self, frame_rate: float = DEFAULT_FRAME_RATE,
                 loop_policy: Optional[Callable[[str], bool]] = None,
                 strict_directions: bool = False):
        """
        Initialize assembler.

        Args:
            frame_rate: Default frames per second
            loop_policy: Callable deciding whether a label loops
            strict_directions: Fail on directions outside the compass table
        """
        self.frame_rate = frame_rate
        self.loop_policy = loop_policy or LoopPolicy()
        self.strict_directions = strict_directions

    def assemble(self, frames: Sequence[FrameRef], frame_rate: Optional[float] = None,
                 loop_policy: Optional[Callable[[str], bool]] = None,
                 name: Optional[str] = None, mirror: bool = False) -> AnimationClip:
        """
        Build one clip from frames already ordered by frame index.

        Args:
            frames: Ordered frames of one (label, direction) group
            frame_rate: Frames per second, assembler default if None
            loop_policy: Loop decision, assembler default if None
            name: Clip name, ``<label>_<direction>`` if None
            mirror: Play the frames horizontally flipped

        Returns:
            The clip; an empty input yields an invalid clip with no frames
        """
        frame_rate = frame_rate or self.frame_rate
        loop_policy = loop_policy or self.loop_policy

        if not frames:
            return AnimationClip(name=name or "", frame_rate=frame_rate, loop=False, valid=False)

        label = frames[0].label
        direction = frames[0].direction
        return AnimationClip(
            name=name or f"{label}_{direction}",
            frame_rate=frame_rate,
            loop=loop_policy(label),
            frames=list(frames),
            label=label,
            direction=direction,
            mirror=mirror,
        )

    @staticmethod
    def group(frames: Iterable[FrameRef]) -> Dict[Tuple[str, str], List[FrameRef]]:
        """Group frames by (label, direction), keeping their order."""
        groups: Dict[Tuple[str, str], List[FrameRef]] = {}
        for ref in frames:
            groups.setdefault((ref.label, ref.direction), []).append(ref)
        return groups

    def build_clips(self, character: str, frames: Sequence[FrameRef]) -> ClipSet:
        """
        Assemble every compass clip that the frames can provide.

        Compass-named frames are used directly. When a label only exists in
        native facings, the compass direction is mapped onto the native code
        and the clip is flagged as mirrored where the art is reused.

        Args:
            character: Character name used as clip prefix
            frames: Frames sorted by (label, direction, index)

        Returns:
            Clip set keyed by (label, compass direction)
        """
        compass_groups = self.group(ref for ref in frames if not ref.native)
        native_groups = self.group(ref for ref in frames if ref.native)
        clip_set = ClipSet(character=character)
        labels = sorted({label for label, _ in compass_groups} | {label for label, _ in native_groups})

        for label in labels:
            has_compass_art = any((label, d) in compass_groups for d in ROW_DIRECTIONS)
            for compass in ROW_DIRECTIONS:
                mirror = False
                if has_compass_art:
                    group = compass_groups.get((label, compass))
                else:
                    native_code, mirror = map_direction(compass, strict=self.strict_directions)
                    group = native_groups.get((label, native_code))

                if group is None:
                    clip_set.notes.append(f"{character}: no frames for {label} {compass}")
                    continue

                clip = self.assemble(group, name=f"{character}_{label}_{compass}", mirror=mirror)
                clip.direction = compass
                clip_set.clips[(label, compass)] = clip

        for note in clip_set.notes:
            logger.info(note)
        return clip_set


def collect_frames(character_dir: Union[str, Path], output_root: Union[str, Path]) -> List[FrameRef]:
    """
    Collect frame images under a character folder.

    Args:
        character_dir: Folder holding the character's images
        output_root: Output root the frame paths are made relative to

    Returns:
        Frames sorted by (label, direction, index, path)
    """
    character_dir = Path(character_dir)
    output_root = Path(output_root)
    refs = []

    for path in sorted(character_dir.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in IMAGE_EXTENSIONS:
            continue
        parsed = parse_frame_name(path.stem, path.parent.name)
        if parsed is None:
            continue
        try:
            width, height = ImageUtils.image_size(path)
        except ValueError as e:
            logger.warning(f"Skipping unreadable frame {path}: {e}")
            continue
        frame = SpriteFrame(
            name=path.stem,
            rect=(0, 0, width, height),
            pivot=PIVOTS[SpriteAlignment.CENTER],
            alignment=SpriteAlignment.CENTER,
            column=parsed.index,
        )
        refs.append(FrameRef(parsed.label, parsed.direction, parsed.index,
                             path.relative_to(output_root).as_posix(), frame, native=parsed.native))

    refs.sort(key=lambda ref: (ref.label, ref.direction, ref.index, ref.path))
    return refs


def write_clip(clip: AnimationClip, path: Union[str, Path]) -> Path:
    """Write a clip as JSON atomically."""
    return atomic_write_json(path, clip.to_dict())


def load_clip(path: Union[str, Path]) -> AnimationClip:
    """
    Load a clip file.

    Raises:
        ValueError: If the file cannot be read or parsed
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ValueError(f"Cannot load animation clip '{path}': {e}")
    if not isinstance(data, dict):
        raise ValueError(f"Cannot load animation clip '{path}': not an object")
    return AnimationClip.from_dict(data)
