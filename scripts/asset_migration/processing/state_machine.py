"""
Layered animation state machine generation.

A generated machine has a base locomotion layer and optional combat and
emote layers. Missing clips never fail generation; the affected state is
left out and the gap is written to the build log.
"""

import re
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .animation import AnimationClip, ClipSet
from .directions import DIRECTION_VECTORS, directions_for
from ..utils.fileio import atomic_write_json


logger = logging.getLogger(__name__)


EMPTY_STATE = "Empty"
COMBAT_ACTIONS = ("attack", "cast", "hit", "death")
TERMINAL_ACTIONS = frozenset({"death"})
MOVE_LABELS = ("walk", "run", "move")
EMOTE_PATTERN = re.compile(r"emote", re.IGNORECASE)

LOCOMOTION_TRANSITION_DURATION = 0.1
COMBAT_ENTRY_DURATION = 0.05
RETURN_EXIT_TIME = 0.9
RETURN_DURATION = 0.1


class ParameterType(Enum):
    FLOAT = "float"
    INT = "int"
    BOOL = "bool"
    TRIGGER = "trigger"


class ConditionMode(Enum):
    IF = "if"
    IF_NOT = "if_not"
    EQUALS = "equals"
    NOT_EQUAL = "not_equal"
    GREATER = "greater"
    LESS = "less"


@dataclass(frozen=True)
class Parameter:
    name: str
    type: ParameterType
    default: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type.value, "default": self.default}


@dataclass(frozen=True)
class Condition:
    parameter: str
    mode: ConditionMode
    value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"parameter": self.parameter, "mode": self.mode.value, "value": self.value}


@dataclass
class BlendChild:
    clip: AnimationClip
    position: Tuple[float, float]


@dataclass
class BlendSpace:
    """2D directional blend over two float parameters."""
    name: str
    parameter_x: str
    parameter_y: str
    children: List[BlendChild] = field(default_factory=list)
    blend_type: str = "simple_directional_2d"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "blend_space",
            "name": self.name,
            "blend_type": self.blend_type,
            "parameter_x": self.parameter_x,
            "parameter_y": self.parameter_y,
            "children": [
                {"clip": child.clip.name, "position": list(child.position), "mirror": child.clip.mirror}
                for child in self.children
            ],
        }


@dataclass
class State:
    name: str
    motion: Optional[Union[AnimationClip, BlendSpace]] = None

    def to_dict(self) -> Dict[str, Any]:
        if isinstance(self.motion, BlendSpace):
            motion = self.motion.to_dict()
        elif isinstance(self.motion, AnimationClip):
            motion = {"type": "clip", "clip": self.motion.name, "mirror": self.motion.mirror}
        else:
            motion = None
        return {"name": self.name, "motion": motion}


@dataclass
class Transition:
    source: str
    destination: str
    conditions: List[Condition] = field(default_factory=list)
    has_exit_time: bool = False
    exit_time: float = 0.0
    duration: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.source,
            "to": self.destination,
            "conditions": [condition.to_dict() for condition in self.conditions],
            "has_exit_time": self.has_exit_time,
            "exit_time": self.exit_time,
            "duration": self.duration,
        }


@dataclass
class Layer:
    name: str
    weight: float = 1.0
    default_state: Optional[str] = None
    states: List[State] = field(default_factory=list)
    parameters: List[Parameter] = field(default_factory=list)
    transitions: List[Transition] = field(default_factory=list)

    def state(self, name: str) -> Optional[State]:
        for state in self.states:
            if state.name == name:
                return state
        return None

    @property
    def state_names(self) -> List[str]:
        return [state.name for state in self.states]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "weight": self.weight,
            "default_state": self.default_state,
            "parameters": [parameter.name for parameter in self.parameters],
            "states": [state.to_dict() for state in self.states],
            "transitions": [transition.to_dict() for transition in self.transitions],
        }


@dataclass
class StateMachineSpec:
    """A generated state machine for one character."""
    name: str
    layers: List[Layer] = field(default_factory=list)
    build_log: List[str] = field(default_factory=list)

    @property
    def parameters(self) -> List[Parameter]:
        seen = {}
        for layer in self.layers:
            for parameter in layer.parameters:
                seen.setdefault(parameter.name, parameter)
        return list(seen.values())

    def layer(self, name: str) -> Optional[Layer]:
        for layer in self.layers:
            if layer.name == name:
                return layer
        return None

    def validate(self) -> List[str]:
        """Check structural invariants and return a list of errors."""
        errors = []
        for layer in self.layers:
            names = layer.state_names
            if len(names) != len(set(names)):
                errors.append(f"Layer {layer.name} has duplicate state names")
            if layer.default_state is None or layer.default_state not in names:
                errors.append(f"Layer {layer.name} must have exactly one default state")

            declared = {parameter.name for parameter in layer.parameters}
            for transition in layer.transitions:
                for endpoint in (transition.source, transition.destination):
                    if endpoint not in names:
                        errors.append(f"Layer {layer.name}: transition references unknown state {endpoint}")
                for condition in transition.conditions:
                    if condition.parameter not in declared:
                        errors.append(
                            f"Layer {layer.name}: transition {transition.source}->{transition.destination} "
                            f"references undeclared parameter {condition.parameter}"
                        )
        return errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "parameters": [parameter.to_dict() for parameter in self.parameters],
            "layers": [layer.to_dict() for layer in self.layers],
            "build_log": list(self.build_log),
        }


@dataclass
class StateMachineOptions:
    create_idle: bool = True
    create_movement: bool = True
    create_combat: bool = True
    create_emote: bool = False
    use_8_directions: bool = True
    use_blend_spaces: bool = True

    @classmethod
    def from_config(cls, config) -> "StateMachineOptions":
        return cls(
            create_idle=config.create_idle,
            create_movement=config.create_movement,
            create_combat=config.create_combat,
            create_emote=config.create_emote,
            use_8_directions=config.use_8_directions,
            use_blend_spaces=config.use_blend_spaces,
        )


BASE_PARAMETERS = (
    Parameter("MoveSpeed", ParameterType.FLOAT, 0.0),
    Parameter("MoveX", ParameterType.FLOAT, 0.0),
    Parameter("MoveY", ParameterType.FLOAT, 0.0),
    Parameter("IsMoving", ParameterType.BOOL, False),
    Parameter("Direction", ParameterType.INT, 0),
)

COMBAT_PARAMETERS = (
    Parameter("Attack", ParameterType.TRIGGER),
    Parameter("Cast", ParameterType.TRIGGER),
    Parameter("Hit", ParameterType.TRIGGER),
    Parameter("Death", ParameterType.TRIGGER),
    Parameter("IsDead", ParameterType.BOOL, False),
    Parameter("InCombat", ParameterType.BOOL, False),
)

EMOTE_PARAMETERS = (
    Parameter("EmoteId", ParameterType.INT, 0),
    Parameter("TriggerEmote", ParameterType.TRIGGER),
)


class StateMachineGenerator:
    """Builds a layered state machine from a character's clips."""

    def __init__(self, options: Optional[StateMachineOptions] = None):
        self.options = options or StateMachineOptions()

    def generate(self, clips: Union[ClipSet, Mapping[Tuple[str, str], AnimationClip]],
                 options: Optional[StateMachineOptions] = None,
                 name: Optional[str] = None) -> StateMachineSpec:
        """
        Generate the state machine.

        Args:
            clips: Clip set or mapping keyed by (label, compass direction)
            options: Generation options, generator default if None
            name: Machine name, the clip set's character if None

        Returns:
            The generated machine; never raises for missing clips
        """
        options = options or self.options
        if isinstance(clips, ClipSet):
            name = name or clips.character
            clips = clips.clips
        spec = StateMachineSpec(name=name or "Character")

        spec.layers.append(self._build_base_layer(clips, options, spec.build_log))
        if options.create_combat:
            spec.layers.append(self._build_combat_layer(clips, options, spec.build_log))
        if options.create_emote:
            spec.layers.append(self._build_emote_layer(clips, options, spec.build_log))

        for entry in spec.build_log:
            logger.info(f"{spec.name}: {entry}")
        return spec

    def _clips_for(self, clips: Mapping[Tuple[str, str], AnimationClip], label: str) -> Dict[str, AnimationClip]:
        return {
            direction: clip for (clip_label, direction), clip in clips.items()
            if clip_label == label and clip.valid and clip.frames
        }

    def _motion(self, label_clips: Dict[str, AnimationClip], state_name: str,
                options: StateMachineOptions, log: List[str]) -> Optional[Union[AnimationClip, BlendSpace]]:
        directions = directions_for(options.use_8_directions)

        if not label_clips:
            log.append(f"No clips for {state_name}; state skipped")
            return None

        missing = [direction for direction in directions if direction not in label_clips]
        if missing:
            log.append(f"{state_name} missing directions: {', '.join(missing)}")

        if options.use_blend_spaces:
            children = [
                BlendChild(label_clips[direction], DIRECTION_VECTORS[direction])
                for direction in directions if direction in label_clips
            ]
            if not children:
                log.append(f"No directional clips for {state_name}; state skipped")
                return None
            return BlendSpace(name=f"{state_name}_Blend", parameter_x="MoveX",
                              parameter_y="MoveY", children=children)

        for direction in ("S",) + tuple(directions):
            if direction in label_clips:
                return label_clips[direction]
        return next(iter(sorted(label_clips.items())))[1]

    def _build_base_layer(self, clips, options: StateMachineOptions, log: List[str]) -> Layer:
        layer = Layer(name="Base Layer", weight=1.0, parameters=list(BASE_PARAMETERS))

        if options.create_idle:
            motion = self._motion(self._clips_for(clips, "idle"), "Idle", options, log)
            if motion is not None:
                layer.states.append(State("Idle", motion))

        if options.create_movement:
            move_clips: Dict[str, AnimationClip] = {}
            for label in MOVE_LABELS:
                move_clips = self._clips_for(clips, label)
                if move_clips:
                    break
            motion = self._motion(move_clips, "Move", options, log)
            if motion is not None:
                layer.states.append(State("Move", motion))

        if not layer.states:
            log.append("Base layer has no locomotion clips; using an empty state")
            layer.states.append(State(EMPTY_STATE))

        layer.default_state = layer.states[0].name

        if layer.state("Idle") and layer.state("Move"):
            layer.transitions.append(Transition(
                "Idle", "Move", [Condition("IsMoving", ConditionMode.IF, True)],
                has_exit_time=False, duration=LOCOMOTION_TRANSITION_DURATION,
            ))
            layer.transitions.append(Transition(
                "Move", "Idle", [Condition("IsMoving", ConditionMode.IF_NOT, False)],
                has_exit_time=False, duration=LOCOMOTION_TRANSITION_DURATION,
            ))
        return layer

    def _build_combat_layer(self, clips, options: StateMachineOptions, log: List[str]) -> Layer:
        layer = Layer(name="Combat Layer", weight=1.0, default_state=EMPTY_STATE,
                      states=[State(EMPTY_STATE)], parameters=list(COMBAT_PARAMETERS))

        for action in COMBAT_ACTIONS:
            state_name = action.capitalize()
            motion = self._motion(self._clips_for(clips, action), state_name, options, log)
            if motion is None:
                continue
            layer.states.append(State(state_name, motion))
            layer.transitions.append(Transition(
                EMPTY_STATE, state_name, [Condition(state_name, ConditionMode.IF, True)],
                has_exit_time=False, duration=COMBAT_ENTRY_DURATION,
            ))
            if action not in TERMINAL_ACTIONS:
                layer.transitions.append(Transition(
                    state_name, EMPTY_STATE, [],
                    has_exit_time=True, exit_time=RETURN_EXIT_TIME, duration=RETURN_DURATION,
                ))
        return layer

    def _build_emote_layer(self, clips, options: StateMachineOptions, log: List[str]) -> Layer:
        layer = Layer(name="Emote Layer", weight=1.0, default_state=EMPTY_STATE,
                      states=[State(EMPTY_STATE)], parameters=list(EMOTE_PARAMETERS))

        emote_labels = sorted({label for label, _ in clips if EMOTE_PATTERN.search(label)})
        if not emote_labels:
            log.append("No emote clips found; emote layer left empty")

        for emote_id, label in enumerate(emote_labels, start=1):
            state_name = label.capitalize()
            motion = self._motion(self._clips_for(clips, label), state_name, options, log)
            if motion is None:
                continue
            layer.states.append(State(state_name, motion))
            layer.transitions.append(Transition(
                EMPTY_STATE, state_name,
                [Condition("TriggerEmote", ConditionMode.IF, True),
                 Condition("EmoteId", ConditionMode.EQUALS, emote_id)],
                has_exit_time=False, duration=RETURN_DURATION,
            ))
            layer.transitions.append(Transition(
                state_name, EMPTY_STATE, [],
                has_exit_time=True, exit_time=RETURN_EXIT_TIME, duration=RETURN_DURATION,
            ))
        return layer


def write_controller(spec: StateMachineSpec, path: Union[str, Path]) -> Path:
    """Write a state machine as JSON atomically."""
    return atomic_write_json(path, spec.to_dict())
