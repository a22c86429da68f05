#!/usr/bin/env python
"""Run random-policy episodes on a registered gymkit environment.

Makes the env by ID (or from a YAML make-config), runs episodes with actions
sampled from its action space, and prints per-episode and summary stats.
Useful as a smoke test after registering a new environment.

Usage:
    # By ID (5 episodes, seed 42)
    python gymkit/scripts/random_rollout.py --env-id CartPole-v1 \
        --episodes 5 --seed 42

    # From a builtin config; CLI flags override the config's values
    python gymkit/scripts/random_rollout.py --config cartpole-sutton --episodes 10

    # Print text frames and save the episode records as JSON
    python gymkit/scripts/random_rollout.py --env-id CartPole-v1 --render \
        --output-dir /tmp/rollout

    # List registered environments
    python gymkit/scripts/random_rollout.py --list
"""

import sys
import json
import argparse
from pathlib import Path

REPO_ROOT = str(Path(__file__).parent.parent.parent)
sys.path.insert(0, REPO_ROOT)

import gymkit
from gymkit.src.env_config import MAKE_DEFAULTS, load_make_config
from gymkit.src.error import Error
from rl_common.inference import run_episodes, summarize_episodes


def _resolve_settings(args) -> dict:
    """Merge CLI args over the YAML config over MAKE_DEFAULTS."""
    if args.config:
        settings = load_make_config(args.config)
    else:
        settings = {k: (dict(v) if isinstance(v, dict) else v) for k, v in MAKE_DEFAULTS.items()}

    if args.env_id is not None:
        settings["id"] = args.env_id
    if args.seed is not None:
        settings["seed"] = args.seed
    if args.episodes is not None:
        settings["episodes"] = args.episodes
    if args.render:
        settings["kwargs"]["render_mode"] = "ansi"
    return settings


def main():
    parser = argparse.ArgumentParser(
        description="Run random-policy episodes on a gymkit environment.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--env-id", default=None, help="Registered environment ID")
    group.add_argument(
        "--config", default=None, help="Builtin config name or path to YAML"
    )
    group.add_argument(
        "--list", action="store_true", help="List registered environments and exit"
    )

    parser.add_argument(
        "--episodes", type=int, default=None, help="Number of episodes (default: 1)"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the first reset (default: clock-seeded)",
    )
    parser.add_argument(
        "--render",
        action="store_true",
        help="Print the final 'ansi' frame of each episode",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Write episodes.json with per-episode records here",
    )

    args = parser.parse_args()

    if args.list:
        gymkit.pprint_registry()
        return

    try:
        settings = _resolve_settings(args)
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    if settings["episodes"] < 1:
        print(f"ERROR: --episodes must be >= 1, got {settings['episodes']}")
        sys.exit(1)

    try:
        env = gymkit.make_untyped(settings["id"], settings["kwargs"])
    except Error as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    print(f"Environment: {env.spec.id}")
    print(f"  Observation space: {env.observation_space}")
    print(f"  Action space: {env.action_space}")
    print(f"  Seed: {settings['seed']}")

    with env:
        episodes = run_episodes(env, settings["episodes"], seed=settings["seed"])
        frame = env.render() if args.render else None

    print(f"\n{'Episode':>8s} {'Reward':>10s} {'Steps':>6s} {'End':>10s}")
    print("-" * 38)
    for i, ep in enumerate(episodes):
        end = "truncated" if ep["truncated"] else "terminated"
        print(f"{i:>8d} {ep['reward']:>10.2f} {ep['steps']:>6d} {end:>10s}")

    if frame is not None:
        print(f"\nFinal frame:\n{frame}")

    summary = summarize_episodes(episodes)
    print(
        f"\nMean reward: {summary['mean_reward']:.2f} "
        f"+/- {summary['std_reward']:.2f} over {summary['episodes']} episodes "
        f"(mean length {summary['mean_steps']:.1f})"
    )

    if args.output_dir:
        out_dir = Path(args.output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        records = [
            {k: ep[k] for k in ("reward", "steps", "terminated", "truncated")}
            for ep in episodes
        ]
        out_path = out_dir / "episodes.json"
        with open(out_path, "w") as f:
            json.dump(
                {"env_id": env.spec.id, "seed": settings["seed"], "summary": summary,
                 "episodes": records},
                f,
                indent=2,
            )
        print(f"Saved: {out_path}")

    print("\nDone.")


if __name__ == "__main__":
    main()
