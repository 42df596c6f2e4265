"""
Ring Layout - slot allocation for the word orbit

Words sit on concentric rings ("layers") around a central anchor. Each layer
is split into a fixed number of angular slots, and every word owns exactly
one (layer_index, slot_index) coordinate.

Capacity rule:
    capacity(i) = base * 2**i

with an optional override table ({layer_index: capacity}) and an optional
maximum layer index beyond which capacity is 0 (the orbit is full).

Everything in this module is a pure function over explicit inputs. The
occupancy map is always passed in by the caller and rebuilt from the store
for every decision; nothing here keeps state between requests.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Set, Tuple

logger = logging.getLogger(__name__)

Coordinate = Tuple[int, int]
Occupancy = Dict[int, Set[int]]


# =============================================================================
# CAPACITY
# =============================================================================

@dataclass(frozen=True)
class LayerCapacity:
    """
    Capacity table for ring layers.

    Attributes:
        base: Slots in layer 0 for the doubling formula (3 or 4 in deployments)
        overrides: Fixed capacities for specific layers, e.g. {3: 24}
        max_layer: Highest usable layer index, or None for unbounded growth
    """
    base: int = 4
    overrides: Mapping[int, int] = field(default_factory=dict)
    max_layer: Optional[int] = None

    def __post_init__(self):
        if self.base < 1:
            raise ValueError(f"base capacity must be at least 1, got {self.base}")
        if self.max_layer is not None and self.max_layer < 0:
            raise ValueError(f"max_layer must be >= 0, got {self.max_layer}")
        for layer_index, capacity in self.overrides.items():
            if layer_index < 0 or capacity < 0:
                raise ValueError(f"invalid override {layer_index}:{capacity}")
        # Own an ordered copy, detached from the caller's mapping
        object.__setattr__(self, 'overrides', dict(sorted(self.overrides.items())))

    def capacity(self, layer_index: int) -> int:
        """Number of slots in the given layer (0 when out of range)."""
        if layer_index < 0:
            return 0
        if self.max_layer is not None and layer_index > self.max_layer:
            return 0
        if layer_index in self.overrides:
            return self.overrides[layer_index]
        return self.base * (2 ** layer_index)


# =============================================================================
# VALIDITY + OCCUPANCY
# =============================================================================

def _is_index(value) -> bool:
    # bool is an int subclass; a stored True is not a slot number
    return isinstance(value, int) and not isinstance(value, bool)


def is_valid_coordinate(layer_index, slot_index, capacity: LayerCapacity) -> bool:
    """
    Check a coordinate read from storage against the capacity table.

    A half-assigned pair (one side None) is never valid.
    """
    if not _is_index(layer_index) or not _is_index(slot_index):
        return False
    layer_capacity = capacity.capacity(layer_index)
    if layer_capacity <= 0:
        return False
    return 0 <= slot_index < layer_capacity


def build_occupancy(coordinates: Iterable[Optional[Coordinate]]) -> Occupancy:
    """
    Build layer -> claimed slots from already validated coordinates.

    None entries (unassigned words) are skipped.
    """
    occupancy: Occupancy = {}
    for coordinate in coordinates:
        if coordinate is None:
            continue
        layer_index, slot_index = coordinate
        occupancy.setdefault(layer_index, set()).add(slot_index)
    return occupancy


# =============================================================================
# ALLOCATION
# =============================================================================

def claim_next_slot(occupancy: Occupancy, capacity: LayerCapacity) -> Optional[Coordinate]:
    """
    Claim the lowest free coordinate in (layer, slot) scan order.

    The claimed coordinate is written into `occupancy` before returning so
    later claims in the same pass cannot take it again.

    Returns:
        (layer_index, slot_index), or None when every layer up to
        max_layer is full. Never None for an unbounded table.
    """
    layer_index = 0
    while capacity.max_layer is None or layer_index <= capacity.max_layer:
        layer_capacity = capacity.capacity(layer_index)
        if layer_capacity > 0:
            taken = occupancy.setdefault(layer_index, set())
            for slot_index in range(layer_capacity):
                if slot_index not in taken:
                    taken.add(slot_index)
                    return (layer_index, slot_index)
        layer_index += 1

    logger.info(f"No free slot left in layers 0..{capacity.max_layer}")
    return None


# =============================================================================
# PRESENTATION GEOMETRY
# =============================================================================

@dataclass(frozen=True)
class Placement:
    """
    Derives the on-screen angle (degrees) and radius for a coordinate.

    Rings are spaced linearly outwards. Layer 0 uses a hand-picked angle set
    when its capacity matches the set size; every other layer spaces slots
    evenly, shifted by half a step when stagger_layers is on so neighbouring
    rings do not line up radially.
    """
    base_radius: float = 90.0
    radius_step: float = 70.0
    stagger_layers: bool = True
    layer0_angles: Tuple[float, ...] = (0.0, 90.0, 180.0, 270.0)

    def radius(self, layer_index: int) -> float:
        return self.base_radius + layer_index * self.radius_step

    def angle(self, layer_index: int, slot_index: int, capacity: LayerCapacity) -> float:
        layer_capacity = capacity.capacity(layer_index)
        if layer_capacity <= 0:
            raise ValueError(f"layer {layer_index} has no slots")

        if layer_index == 0 and len(self.layer0_angles) == layer_capacity:
            return self.layer0_angles[slot_index] % 360.0

        spacing = 360.0 / layer_capacity
        offset = spacing / 2 if (self.stagger_layers and layer_index > 0) else 0.0
        return (offset + spacing * slot_index) % 360.0

    def place(self, layer_index, slot_index, capacity: LayerCapacity) -> Tuple[Optional[float], Optional[float]]:
        """(angle, radius) for a coordinate, (None, None) when unassigned."""
        if layer_index is None or slot_index is None:
            return None, None
        return self.angle(layer_index, slot_index, capacity), self.radius(layer_index)
