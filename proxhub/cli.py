"""proxhub command-line interface."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

import requests
from rich.console import Console
from rich.table import Table

from proxhub.config import MonitorConfig

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
DEFAULT_URL = "http://127.0.0.1:3000"


def configure_logging(verbose: bool = False) -> None:
	logging.basicConfig(
		level=logging.DEBUG if verbose else logging.INFO,
		format=LOG_FORMAT,
		datefmt="%Y-%m-%dT%H:%M:%S%z",
		force=True,
	)


def _fetch(url: str, path: str, timeout: float) -> Dict[str, Any]:
	try:
		response = requests.get(url.rstrip("/") + path, timeout=timeout)
		response.raise_for_status()
	except requests.RequestException as exc:
		raise ValueError(f"could not reach {url}: {exc}") from exc
	return response.json()


def _format_distance(value: Any) -> str:
	if value is None:
		return ""
	if value < 0:
		return "unknown"
	return f"{value:.2f}"


def _cmd_serve(args: argparse.Namespace) -> int:
	import uvicorn

	configure_logging(args.verbose)
	config = MonitorConfig.from_env()
	uvicorn.run(
		"proxhub.api:app",
		host=args.host or config.host,
		port=args.port or config.port,
		log_config=None,
		reload=args.reload,
	)
	return 0


def _cmd_devices(args: argparse.Namespace) -> int:
	payload = _fetch(args.url, "/devices", args.timeout)
	if args.json:
		json.dump(payload, sys.stdout, indent=2)
		sys.stdout.write("\n")
		return 0
	console = Console()
	table = Table(title=f"Devices ({payload.get('count', 0)})", show_lines=False)
	for column in ("address", "name", "rssi", "distance", "priority", "last updated"):
		table.add_column(column.upper())
	for entry in payload.get("devices", []):
		table.add_row(
			str(entry.get("address", "")),
			str(entry.get("name") or ""),
			str(entry.get("rssi") if entry.get("rssi") is not None else ""),
			_format_distance(entry.get("distance")),
			"yes" if entry.get("isPriority") else "",
			str(entry.get("lastUpdated", "")),
		)
	console.print(table)
	status = payload.get("systemStatus", {})
	console.print(
		f"scanner active: {status.get('scannerActive')}  notifier active: {status.get('notifierActive')}"
	)
	return 0


def _cmd_stats(args: argparse.Namespace) -> int:
	payload = _fetch(args.url, "/system-stats", args.timeout)
	if args.json:
		json.dump(payload, sys.stdout, indent=2)
		sys.stdout.write("\n")
		return 0
	console = Console()
	table = Table(title="System stats", show_header=False)
	table.add_column("metric")
	table.add_column("value")
	table.add_row("devices", str(payload.get("totalDevices")))
	table.add_row("priority devices", str(payload.get("priorityDevices")))
	table.add_row("priority in range", str(payload.get("priorityDevicesInRange")))
	table.add_row("recent notifications", str(payload.get("recentNotifications")))
	for bucket, count in payload.get("devicesByDistance", {}).items():
		table.add_row(f"distance: {bucket}", str(count))
	for key, value in payload.get("systemHealth", {}).items():
		table.add_row(key, str(value))
	performance = payload.get("performance", {})
	table.add_row("total scans", str(performance.get("totalScans")))
	table.add_row("uptime (s)", f"{performance.get('uptime', 0):.0f}")
	console.print(table)
	return 0


def _build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(description="proxhub BLE proximity hub")
	sub = parser.add_subparsers(dest="command", required=True)

	serve = sub.add_parser("serve", help="Run the HTTP/WebSocket server")
	serve.add_argument("--host", help="Bind address (default PROXHUB_HOST or 0.0.0.0)")
	serve.add_argument("--port", type=int, help="Bind port (default PROXHUB_PORT or 3000)")
	serve.add_argument("--reload", action="store_true", help="Enable auto-reload")
	serve.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
	serve.set_defaults(handler=_cmd_serve)

	for name, handler, help_text in (
		("devices", _cmd_devices, "Show the current device snapshot"),
		("stats", _cmd_stats, "Show aggregate system statistics"),
	):
		query = sub.add_parser(name, help=help_text)
		query.add_argument("--url", default=DEFAULT_URL, help="Base URL of a running server")
		query.add_argument("--timeout", type=float, default=5.0, help="Request timeout seconds")
		query.add_argument("--json", action="store_true", help="Output JSON")
		query.set_defaults(handler=handler)

	return parser


def main(argv: Optional[List[str]] = None) -> int:
	parser = _build_parser()
	args = parser.parse_args(argv)
	try:
		return args.handler(args)
	except ValueError as exc:
		parser.error(str(exc))


if __name__ == "__main__":
	sys.exit(main())
