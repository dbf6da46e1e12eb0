"""Command-line interface for facelive."""

import sys
import argparse
import logging

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="facelive - Pose-challenge face liveness",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  facelive info                               # Default settings and bearing windows
  facelive info --config session.yaml         # Settings from YAML
  facelive replay trace.jsonl                 # Replay a recorded measurement trace
  facelive replay trace.jsonl --seed 7 -o out # Fixed bearing order, save result.json
""",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # info command
    info_parser = subparsers.add_parser(
        "info",
        help="Show effective settings and acceptance windows",
    )
    info_parser.add_argument("--config", type=str, metavar="PATH", help="Session settings YAML")

    # replay command
    replay_parser = subparsers.add_parser(
        "replay",
        help="Run a session over a recorded trace",
        description="Feed a JSONL measurement trace to a liveness session and report the outcome.",
    )
    replay_parser.add_argument("trace", help="Path to JSONL measurement trace")
    replay_parser.add_argument("--config", type=str, metavar="PATH", help="Session settings YAML")
    replay_parser.add_argument("--seed", type=int, default=None, help="Bearing sequence seed")
    replay_parser.add_argument(
        "--output", "-o", type=str, metavar="DIR",
        help="Directory for result.json",
    )
    replay_parser.add_argument(
        "--no-recognition", action="store_true",
        help="Skip face template comparison (liveness only)",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.INFO)

    if args.command == "info":
        return run_info(args)
    elif args.command == "replay":
        return run_replay(args)

    parser.print_help()
    return 1


def _load_settings(path):
    from facelive.config import SessionSettings

    if path:
        return SessionSettings.from_yaml(path)
    return SessionSettings()


def _fmt(value: float) -> str:
    if value == float("inf"):
        return "+inf"
    if value == float("-inf"):
        return "-inf"
    return f"{value:+.1f}"


def run_info(args) -> int:
    """Print effective settings and the acceptance window of every bearing."""
    from facelive.geometry import AngleBearingEvaluator
    from facelive.types import Bearing

    settings = _load_settings(args.config)
    evaluator = AngleBearingEvaluator(settings)

    print("facelive - Session Settings")
    print("=" * 60)
    for name, value in settings.to_dict().items():
        print(f"  {name:<24} {value}")

    print()
    print(f"  {'bearing':<12} {'target':>16} {'yaw window':>18} {'pitch window':>18}")
    print("  " + "-" * 66)
    for bearing in Bearing:
        target = evaluator.target_angle(bearing)
        lo, hi = evaluator.min_angle(bearing), evaluator.max_angle(bearing)
        marker = "*" if bearing in settings.bearings else " "
        target_str = f"({_fmt(target.yaw)}, {_fmt(target.pitch)})"
        yaw_str = f"({_fmt(lo.yaw)}, {_fmt(hi.yaw)})"
        pitch_str = f"({_fmt(lo.pitch)}, {_fmt(hi.pitch)})"
        print(f"{marker} {bearing.value:<12} {target_str:>16} {yaw_str:>18} {pitch_str:>18}")
    print("\n  * candidate bearing")
    return 0


def run_replay(args) -> int:
    """Replay a measurement trace. Exit code 0 on pass, 1 otherwise."""
    from facelive.errors import LivenessError
    from facelive.persistence import load_trace, save_result
    from facelive.runner import run_session
    from facelive.scoring import SessionResultEvaluator
    from facelive.session import LivenessSession

    settings = _load_settings(args.config)
    measurements = load_trace(args.trace)
    logger.info("Loaded %d measurements from %s", len(measurements), args.trace)

    result_evaluator = None
    if not args.no_recognition:
        if any(m.template is not None for m in measurements):
            result_evaluator = SessionResultEvaluator.from_settings(settings)
        else:
            logger.info("Trace has no face templates, recognition skipped")

    session = LivenessSession(settings, result_evaluator=result_evaluator, seed=args.seed)
    error = None
    try:
        run_session(session, ((m, None) for m in measurements))
    except LivenessError as e:
        error = e

    result = session.result
    print(f"Bearings: {', '.join(b.value for b in session.history)}")
    print(f"Captures: {len(result.captures)} ({len(result.control_captures)} control)")
    if result.recognition_score is not None:
        print(f"Score:    {result.recognition_score:.3f}")
    print(f"Verdict:  {result.verdict.value}")
    if result.failure is not None:
        detail = f" ({error})" if error is not None else ""
        print(f"Failure:  {result.failure.value}{detail}")

    if args.output:
        path = save_result(result, args.output, settings=settings)
        print(f"Saved:    {path}")

    return 0 if result.passed else 1


if __name__ == "__main__":
    sys.exit(main())
