#!/usr/bin/env python3
"""
Demo script generating a world with every layer enabled.
"""

import sys

from py_worldmap import generate_world
from py_worldmap.config import configure_logging, settings


def main():
    seed = sys.argv[1] if len(sys.argv) > 1 else settings.default_seed
    configure_logging(fmt="console")

    world = generate_world(
        seed,
        settings.default_width,
        settings.default_height,
        contour_count=8,
        climate_enabled=True,
        wind_enabled=True,
        border_enabled=True,
        country_count=settings.default_country_count,
    )

    print(f"World '{world.seed_text}' on a {world.gw}x{world.gh} grid")
    for key, value in world.summary().items():
        print(f"  {key}: {value}")

    print("\nLargest countries:")
    for country in sorted(world.countries, key=lambda c: -c.area)[:10]:
        print(f"  {country.name:<40} area={country.area:<6} capital={country.capital}")


if __name__ == "__main__":
    main()
