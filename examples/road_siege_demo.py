"""
Demo script for the street-routing and terrain core.

This example walks through one round of play on synthetic data:
1. Parse an Overpass-style response into road segments
2. Find where roads enter the play area and route them to the target
3. Dry-run and commit a bomb that destroys part of the network
4. Compute a tower's visibility polygon over hilly terrain
"""

import numpy as np

from roadsiege.core.logging_config import setup_logging
from roadsiege.core.roads.network import RoadNetwork
from roadsiege.core.terrain.elevation import ElevationGrid
from roadsiege.integrations.overpass import OverpassResponseParser
from roadsiege.models.geo import GeoBounds, LatLng, ObserverPoint, planar_offset_m
from roadsiege.models.play_area import PlayArea


def build_overpass_response():
    """A 5x5 street grid, 0.002 degrees (about 220 m) between junctions."""
    elements = []
    spacing = 0.002
    origin = -0.004

    def node_id(row, col):
        return 1000 + row * 10 + col

    for row in range(5):
        for col in range(5):
            elements.append(
                {
                    "type": "node",
                    "id": node_id(row, col),
                    "lat": origin + row * spacing,
                    "lon": origin + col * spacing,
                }
            )

    way_id = 1
    for row in range(5):
        elements.append(
            {
                "type": "way",
                "id": way_id,
                "nodes": [node_id(row, col) for col in range(5)],
                "tags": {"highway": "residential", "name": f"Street {row + 1}"},
            }
        )
        way_id += 1
    for col in range(5):
        elements.append(
            {
                "type": "way",
                "id": way_id,
                "nodes": [node_id(row, col) for row in range(5)],
                "tags": {"highway": "secondary", "name": f"Avenue {col + 1}"},
            }
        )
        way_id += 1

    return {"elements": elements}


def main():
    """Run the demo."""
    setup_logging(log_level="WARNING")

    print("=" * 60)
    print("Road Siege Core Demo")
    print("=" * 60)

    # 1. Roads
    print("\n1. Parsing road data...")
    roads = OverpassResponseParser().parse_roads(build_overpass_response())
    network = RoadNetwork(roads)
    stats = network.get_network_stats()
    print(f"   - Roads: {stats['total_roads']}")
    print(f"   - Nodes: {stats['graph']['num_nodes']}")
    print(f"   - Total length: {stats['total_length_m']:.0f} m")

    # 2. Play area and entries
    print("\n2. Finding boundary entries...")
    corners = [
        LatLng(-0.003, -0.003),
        LatLng(-0.003, 0.003),
        LatLng(0.003, 0.003),
        LatLng(0.003, -0.003),
    ]
    target = LatLng(0.0, 0.0)
    area = PlayArea(corners, target, name="Demo Grid")
    entries = network.find_boundary_entries(target, area.area)

    for entry in entries:
        print(
            f"   - {entry.edge.value:>5}: road {entry.road_path.road_id}, "
            f"{entry.road_path.length_m:.0f} m to target"
        )

    # 3. Bomb
    print("\n3. Dropping a bomb on the centre junction...")
    bomb_center = LatLng(0.0, 0.0)
    radius = 50.0
    if network.simulate_node_removal(bomb_center, radius, target, entries):
        removed = network.remove_roads_in_radius(bomb_center, radius)
        print(f"   - Destroyed nodes: {removed}")
        entries = network.find_boundary_entries(target, area.area)
        print(f"   - Entries after bomb: {len(entries)}")
    else:
        print("   - Bomb rejected: it would cut every route to the target")

    # 4. Terrain
    print("\n4. Tower visibility over a hill...")
    bounds = GeoBounds(south=-0.006, west=-0.006, north=0.006, east=0.006)
    rows = cols = 25
    lat = np.linspace(bounds.north, bounds.south, rows)[:, None]
    lng = np.linspace(bounds.west, bounds.east, cols)[None, :]
    heights = 40.0 * np.exp(-((lat - 0.002) ** 2 + (lng - 0.002) ** 2) / 2e-6)
    grid = ElevationGrid(heights, bounds)

    tower_position = LatLng(-0.001, -0.001)
    if area.is_valid_tower_position(tower_position):
        print("   - Tower position is valid")
    else:
        print(f"   - Tower is inside the {area.no_build_radius_meters:.0f} m no-build radius")

    tower = ObserverPoint(tower_position.lat, tower_position.lng, height_offset=10.0)
    polygon = grid.calculate_visibility_polygon(tower, base_range=300.0)
    reach = [sum(d * d for d in planar_offset_m(tower_position, v)) ** 0.5 for v in polygon]
    print(f"   - Vertices: {len(polygon)}")
    print(f"   - Reach: {min(reach):.0f} m to {max(reach):.0f} m")

    enemy = ObserverPoint(0.004, 0.004, height_offset=2.0)
    visible = grid.check_line_of_sight(tower, enemy)
    print(f"   - Enemy behind the hill visible: {visible}")

    print("\n" + "=" * 60)
    print("Demo Complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
