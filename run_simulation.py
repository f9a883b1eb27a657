from argparse import ArgumentParser

from trafficlink import app_logger
from trafficlink.settings import FacadeSettings, load_settings_from_path
from trafficlink.sumo import TraCISession, parse_injection, run_session


def print_summary(result: dict):
    print("\n=== Simulation Summary ===")
    print(f"Steps run: {result['steps']}")

    occupied = [s for s in result["edge_stats"].values() if not s.is_empty]
    print(f"Occupied edges: {len(occupied)}/{len(result['edge_stats'])}")
    print(f"Pending deferred operations: {result['pending_operations']}")

    action_log = result["traffic_lights"].get_action_log()
    print(f"Traffic light actions: {len(action_log)}")


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(description="Drive a SUMO scenario through TraCI")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--config",
        type=str,
        help="YAML settings file",
    )
    source.add_argument(
        "--sumo-cfg",
        type=str,
        help="SUMO .sumocfg file (default settings otherwise)",
    )
    parser.add_argument(
        "--gui",
        action="store_true",
        help="Use sumo-gui instead of sumo",
    )
    parser.add_argument(
        "--steps",
        type=int,
        default=1000,
        help="Maximum number of simulation steps",
    )
    parser.add_argument(
        "--inject",
        type=parse_injection,
        action="append",
        default=[],
        metavar="VEH_ID:ROUTE_OR_EDGE[:SPEED]",
        help="Vehicle to inject before the first step (repeatable)",
    )
    parser.add_argument(
        "--report-interval",
        type=int,
        default=100,
        help="Print edge statistics every N steps (0 disables)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Directory for the traffic light action log",
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.config:
        settings = load_settings_from_path(args.config)
    else:
        settings = FacadeSettings(config_file=args.sumo_cfg)
    if args.gui:
        settings.sumo_binary = "sumo-gui"

    app_logger.init(settings.log_level)

    session = TraCISession.from_settings(settings)
    result = run_session(
        session,
        max_steps=args.steps,
        injections=args.inject,
        report_interval=args.report_interval,
        output_dir=args.output,
        default_vehicle_type=settings.default_vehicle_type,
        route_tries=settings.route_tries,
    )
    if not result:
        return 1

    print_summary(result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
