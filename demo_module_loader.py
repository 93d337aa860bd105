#!/usr/bin/env python3
"""
Demo script for the module loader.

This script walks through the loader's features using simulated desktop units:
1. Load plan
2. Tiered preload
3. On-demand loading with shared dependencies
4. Failure and retry
5. Idle and visibility loading
6. Statistics
"""

import asyncio
import random

from modloader import LoadPriority, ModuleLoader, UnitLoadError


def print_section(title: str):
    """Print section header."""
    print("\n" + "=" * 60)
    print(f"  {title}")
    print("=" * 60 + "\n")


def simulated_unit(name: str, min_ms: int = 20, max_ms: int = 120, fail_times: int = 0):
    """Build a loader that sleeps like a network fetch and fails ``fail_times`` times first."""
    state = {"failures_left": fail_times}

    async def load():
        await asyncio.sleep(random.randint(min_ms, max_ms) / 1000)
        if state["failures_left"] > 0:
            state["failures_left"] -= 1
            raise ConnectionError(f"{name}: fetch interrupted")
        return {"unit": name}

    return load


def build_loader() -> ModuleLoader:
    loader = ModuleLoader()
    catalog = [
        ("vfs", LoadPriority.CRITICAL, True, []),
        ("windowmanager", LoadPriority.CRITICAL, True, []),
        ("desktop", LoadPriority.HIGH, True, ["vfs"]),
        ("stylemanager", LoadPriority.HIGH, True, ["windowmanager"]),
        ("processmonitor", LoadPriority.HIGH, True, []),
        ("filemanager", LoadPriority.MEDIUM, False, ["vfs", "windowmanager"]),
        ("emacs", LoadPriority.MEDIUM, False, ["vfs", "windowmanager"]),
        ("netscape", LoadPriority.LOW, False, ["windowmanager"]),
        ("lynx", LoadPriority.LOW, False, ["windowmanager"]),
        ("calendar", LoadPriority.LOW, False, ["windowmanager"]),
        ("timemanager", LoadPriority.IDLE, False, []),
        ("appmanager", LoadPriority.IDLE, False, []),
    ]
    for name, priority, preload, deps in catalog:
        loader.register(
            name,
            simulated_unit(name, fail_times=1 if name == "netscape" else 0),
            priority=priority,
            dependencies=deps,
            preload=preload,
        )
    return loader


async def demo_load_plan(loader: ModuleLoader):
    """Demo 1: Load plan."""
    print_section("Demo 1: Load Plan")
    print(loader.format_load_plan())


async def demo_preload(loader: ModuleLoader):
    """Demo 2: Tiered preload."""
    print_section("Demo 2: Tiered Preload")

    report = await loader.preload_by_tier(LoadPriority.HIGH)
    print(f"Preloaded {len(report.loaded)}/{len(report.requested)} units "
          f"in {report.total_duration_ms:.0f}ms")
    for name in report.loaded:
        print(f"  ✓ {name}")


async def demo_on_demand(loader: ModuleLoader):
    """Demo 3: On-demand loading."""
    print_section("Demo 3: On-Demand Loading")

    # Both units depend on vfs and windowmanager, which are already loaded
    handles = await asyncio.gather(loader.load("filemanager"), loader.load("emacs"))
    for handle in handles:
        print(f"  ✓ {handle['unit']}")


async def demo_retry(loader: ModuleLoader):
    """Demo 4: Failure and retry."""
    print_section("Demo 4: Failure and Retry")

    try:
        await loader.load("netscape")
    except UnitLoadError as e:
        print(f"  ✗ {e}")

    handle = await loader.load("netscape")
    print(f"  ✓ {handle['unit']} loaded on retry")


async def demo_opportunistic(loader: ModuleLoader):
    """Demo 5: Idle and visibility loading."""
    print_section("Demo 5: Idle and Visibility Loading")

    watch = loader.load_on_visible("calendar", "calendar-icon")
    print(f"Visibility fallback fired immediately: {watch.fired}")

    loaded = await loader.load_on_idle(["timemanager", "appmanager", "lynx"])
    print(f"Idle chain loaded: {', '.join(loaded)}")
    await watch.task


async def demo_stats(loader: ModuleLoader):
    """Demo 6: Statistics."""
    print_section("Demo 6: Statistics")
    print(loader.telemetry.format_report())


async def main():
    """Main demo function."""
    print("\n" + "=" * 60)
    print("  Module Loader Demo")
    print("=" * 60)

    loader = build_loader()
    demos = [
        demo_load_plan,
        demo_preload,
        demo_on_demand,
        demo_retry,
        demo_opportunistic,
        demo_stats,
    ]

    for demo_func in demos:
        try:
            await demo_func(loader)
        except Exception as e:
            print(f"\nError in demo: {e}")
            import traceback
            traceback.print_exc()

    print_section("Demo Complete!")


if __name__ == "__main__":
    asyncio.run(main())
