from __future__ import annotations

# Single-entrypoint runner.
#
#   python -m shopfloor.app run [--days N | --duration T] [--seed S] [--mqtt-host HOST]
#       Run a headless simulation and print a summary. With --mqtt-host every
#       event is also published to the broker.
#
#   python -m shopfloor.app watch [--mqtt-host HOST]
#       Print the event stream of a simulation running elsewhere.

import argparse
import logging
import time
from typing import Any

from . import mqtt_topics
from .config import SimulationConfig
from .simulation import ShopSimulation, SimulationSummary

logger = logging.getLogger(__name__)


def _add_mqtt_args(p: argparse.ArgumentParser, *, required_host: bool) -> None:
    if required_host:
        p.add_argument("--mqtt-host", default="127.0.0.1")
    else:
        p.add_argument("--mqtt-host", default=None, help="publish events to this broker")
    p.add_argument("--mqtt-port", type=int, default=1883)
    p.add_argument("--namespace", default=mqtt_topics.DEFAULT_NAMESPACE)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Shop-floor simulation - main entrypoint")
    parser.add_argument("--log-level", default="WARNING", help="DEBUG, INFO, WARNING, ...")
    sub = parser.add_subparsers(dest="cmd", required=True)

    defaults = SimulationConfig()

    p_run = sub.add_parser("run", help="Run a headless simulation and print a summary")
    span = p_run.add_mutually_exclusive_group()
    span.add_argument("--days", type=int, default=None, help="simulate until N days have closed (default 1)")
    span.add_argument("--duration", type=float, default=None, help="simulate T time-units")
    p_run.add_argument("--seed", type=int, default=None)
    p_run.add_argument("--num-shelves", type=int, default=defaults.num_shelves)
    p_run.add_argument("--num-stations", type=int, default=defaults.num_stations)
    p_run.add_argument("--arrival-rate", type=float, default=defaults.arrival_rate, help="λ customers/time-unit")
    p_run.add_argument("--max-customers", type=int, default=defaults.max_customers)
    p_run.add_argument("--max-daily-customers", type=int, default=defaults.max_daily_customers)
    p_run.add_argument("--starting-money", type=float, default=defaults.starting_money)
    p_run.add_argument("--day-length", type=float, default=defaults.day_length)
    p_run.add_argument("--tick", type=float, default=defaults.tick)
    p_run.add_argument("--no-restock", action="store_true", help="never refill empty shelves")
    _add_mqtt_args(p_run, required_host=False)

    p_watch = sub.add_parser("watch", help="Print events published by a running simulation")
    _add_mqtt_args(p_watch, required_host=True)

    return parser


def config_from_args(args: argparse.Namespace) -> SimulationConfig:
    return SimulationConfig(
        seed=args.seed,
        num_shelves=args.num_shelves,
        num_stations=args.num_stations,
        arrival_rate=args.arrival_rate,
        max_customers=args.max_customers,
        max_daily_customers=args.max_daily_customers,
        starting_money=args.starting_money,
        day_length=args.day_length,
        tick=args.tick,
        auto_restock=not args.no_restock,
    ).validate()


def format_summary(summary: SimulationSummary) -> list[str]:
    lines = [
        f"[sim] days closed={summary.days_completed} elapsed={summary.elapsed:.1f}",
        f"[sim] customers spawned={summary.customers_spawned} paid={summary.customers_paid} "
        f"abandoned={summary.customers_abandoned} empty-handed={summary.customers_empty_handed}",
        f"[sim] items sold={summary.items_sold} forfeited={summary.items_forfeited} revenue={summary.revenue:.2f}",
    ]
    for r in summary.day_reports:
        lines.append(
            f"[day {r.day}] revenue={r.revenue:.2f} expenses={r.expenses:.2f} "
            f"served={r.customers_served} money={r.closing_money:.2f}"
        )
    if summary.ledger is not None:
        s = summary.ledger
        lines.append(f"[ledger] day={s.day} money={s.money:.2f} reputation={s.reputation:.1f}")
    return lines


def run(args: argparse.Namespace) -> SimulationSummary:
    sim = ShopSimulation(config_from_args(args))

    mqtt = None
    if args.mqtt_host:
        from .mqtt_client import MqttClient
        from .publisher import MqttEventPublisher

        mqtt = MqttClient(client_id="shopfloor-sim", host=args.mqtt_host, port=args.mqtt_port)
        mqtt.start()
        sim.events.subscribe(
            MqttEventPublisher(
                mqtt,
                namespace=args.namespace,
                status_provider=lambda: (sim.ledger.snapshot(), sim.stations.status()),
            )
        )

    try:
        summary = sim.run(duration=args.duration, days=args.days)
    finally:
        if mqtt is not None:
            mqtt.stop()

    for line in format_summary(summary):
        print(line)
    return summary


def watch(args: argparse.Namespace) -> None:
    from .mqtt_client import MqttClient

    def on_message(topic: str, msg: dict[str, Any]) -> None:
        kind = msg.get("type", "?")
        rest = " ".join(f"{k}={v}" for k, v in msg.items() if k != "type")
        print(f"[watch] {topic} {kind} {rest}", flush=True)

    mqtt = MqttClient(client_id="shopfloor-watch", host=args.mqtt_host, port=args.mqtt_port)
    mqtt.add_handler(on_message)
    mqtt.start()
    for topic in (
        mqtt_topics.all_events(args.namespace),
        mqtt_topics.ledger_status(args.namespace),
        mqtt_topics.all_station_status(args.namespace),
    ):
        mqtt.subscribe(topic)
    print(f"[watch] listening on {args.mqtt_host}:{args.mqtt_port} ns={args.namespace} (Ctrl+C to stop)")

    try:
        while True:
            time.sleep(1.0)
    except KeyboardInterrupt:
        pass
    finally:
        mqtt.stop()


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    if args.cmd == "run":
        run(args)
        return

    if args.cmd == "watch":
        watch(args)
        return


if __name__ == "__main__":
    main()
