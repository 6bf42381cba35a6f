"""Terminal front end for status pages.

Usage:
    # Follow a freshly created server until it stops
    server-status watch --launch-url "/server-status?instanceId=i-0abc&publicIp=1.2.3.4"

    # Skip the provisioning wait and poll every 10s
    server-status watch --instance-id i-0abc --provisioning-seconds 0 --poll-interval 10

    # Stop a server (asks for confirmation unless --yes)
    server-status stop --instance-id i-0abc --yes

    # Serve the HTTP API (settings from the environment)
    server-status serve --port 8000

Environment variables:
    STATUS_API_URL     Base URL of the instance API
    STATUS_API_TOKEN   Bearer token (re-read before every request)
    plus every variable read by StatusPageSettings.from_env()

Exit codes:
    0  page finished normally (or stop succeeded)
    1  stop failed, or invalid configuration
    2  the server stopped unexpectedly (inactivity alert)
    130 interrupted
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import sys
from typing import Sequence, TextIO

from .launch import ServerReference
from .lifecycle.presentation import StatusView
from .lifecycle.session import StatusPageSession
from .lifecycle.state_machine import Phase
from .observability.logging import configure_logging
from .protocols import InstanceService, TokenProvider
from .providers.instances_client import InstancesClient
from .providers.token_provider import EnvTokenProvider, StaticTokenProvider
from .settings import SettingsError, StatusPageSettings

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ALERTED = 2
EXIT_INTERRUPTED = 130


def render_view(view: StatusView) -> list[str]:
    """Render a view as plain text lines."""
    if view.view == 'provisioning':
        lines = [f'Creating your server... {view.time_remaining} remaining']
        lines.extend(
            f"  [{'x' if step.done else ' '}] {step.label}" for step in view.progress
        )
        return lines

    lines = [
        f'{view.server_name} [{view.status_label}]',
        f'  Address: {view.server_address}',
        f'  Version: {view.minecraft_version} ({view.server_type})',
    ]
    if view.cost_warning:
        lines.append(f'  Warning: {view.cost_warning}')
    if view.stop_error:
        lines.append(f'  Error: {view.stop_error}')
    if view.alert_message:
        lines.append(f'  ! {view.alert_message}')
    return lines


class _ViewPrinter:
    """Prints a view only when the rendered text changes."""

    def __init__(self, out: TextIO) -> None:
        self._out = out
        self._last: list[str] | None = None

    def __call__(self, view: StatusView) -> None:
        lines = render_view(view)
        if lines == self._last:
            return
        self._last = lines
        self._out.write('\n'.join(lines) + '\n')
        self._out.flush()


def _reference_from_args(args: argparse.Namespace) -> ServerReference:
    if args.launch_url:
        reference = ServerReference.from_launch_url(args.launch_url)
    else:
        reference = ServerReference()
    overrides = {
        field.name: getattr(args, field.name)
        for field in dataclasses.fields(ServerReference)
        if getattr(args, field.name, None)
    }
    return dataclasses.replace(reference, **overrides)


def _settings_from_args(args: argparse.Namespace) -> StatusPageSettings:
    settings = StatusPageSettings.from_env()
    overrides = {}
    if args.api_url:
        overrides['api_base_url'] = args.api_url.rstrip('/')
    if getattr(args, 'provisioning_seconds', None) is not None:
        overrides['provisioning_seconds'] = args.provisioning_seconds
    if getattr(args, 'poll_interval', None) is not None:
        overrides['poll_interval_seconds'] = args.poll_interval
    return dataclasses.replace(settings, **overrides)


def _token_provider(args: argparse.Namespace) -> TokenProvider:
    if args.token:
        return StaticTokenProvider(args.token)
    return EnvTokenProvider()


async def watch(
    session: StatusPageSession,
    *,
    out: TextIO = sys.stdout,
) -> int:
    """Run a page until it reaches a terminal phase."""
    finished = asyncio.Event()
    printer = _ViewPrinter(out)

    def _on_view(view: StatusView) -> None:
        printer(view)
        if session.state.is_terminal:
            finished.set()

    session.add_view_listener(_on_view)
    printer(session.view())
    session.start()
    if session.state.is_terminal:
        finished.set()
    try:
        await finished.wait()
    finally:
        await session.close()
    return EXIT_ALERTED if session.phase is Phase.ALERTED_INACTIVE else EXIT_OK


async def stop(session: StatusPageSession, *, out: TextIO = sys.stdout) -> int:
    """Request and confirm a stop once."""
    session.request_stop()
    result = await session.confirm_stop()
    await session.close()
    if result.succeeded:
        out.write(f'Server {session.reference.instance_id} stopped.\n')
        return EXIT_OK
    out.write(f'Error: {result.error_message or "stop not possible"}\n')
    return EXIT_FAILED


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='server-status',
        description='Follow or stop a created server instance.',
    )
    parser.add_argument('--api-url', help='Instance API base URL (overrides STATUS_API_URL)')
    parser.add_argument('--token', help='Bearer token (default: STATUS_API_TOKEN)')
    parser.add_argument('--log-level', default=None)
    sub = parser.add_subparsers(dest='command', required=True)

    def _add_reference_args(p: argparse.ArgumentParser) -> None:
        p.add_argument('--launch-url', help='Status page URL or query string')
        for field in dataclasses.fields(ServerReference):
            p.add_argument(f"--{field.name.replace('_', '-')}", dest=field.name)

    watch_parser = sub.add_parser('watch', help='Follow a server until it stops')
    _add_reference_args(watch_parser)
    watch_parser.add_argument('--provisioning-seconds', type=int)
    watch_parser.add_argument('--poll-interval', type=float)

    stop_parser = sub.add_parser('stop', help='Stop a server')
    _add_reference_args(stop_parser)
    stop_parser.add_argument('--yes', action='store_true', help='Do not ask for confirmation')

    serve_parser = sub.add_parser('serve', help='Run the status page HTTP API')
    serve_parser.add_argument('--host', default='127.0.0.1')
    serve_parser.add_argument('--port', type=int, default=8000)

    return parser


def serve(host: str, port: int) -> int:
    import uvicorn

    uvicorn.run(
        'server_status.main:create_app_from_env',
        factory=True,
        host=host,
        port=port,
    )
    return EXIT_OK


def main(
    argv: Sequence[str] | None = None,
    *,
    instance_service: InstanceService | None = None,
    out: TextIO = sys.stdout,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(level=args.log_level, json_output=False)
    if args.command == 'serve':
        return serve(args.host, args.port)

    try:
        settings = _settings_from_args(args)
    except SettingsError as exc:
        out.write(f'Error: {exc}\n')
        return EXIT_FAILED
    if args.command == 'stop':
        settings = dataclasses.replace(settings, provisioning_seconds=0)
    errors = settings.validate()
    if errors:
        out.write('Error: invalid configuration\n')
        out.writelines(f'  - {e}\n' for e in errors)
        return EXIT_FAILED

    reference = _reference_from_args(args)
    if args.command == 'stop' and not args.yes:
        answer = input(f'Stop server {reference.instance_id}? [y/N] ')
        if answer.strip().lower() not in ('y', 'yes'):
            return EXIT_OK

    session = StatusPageSession(
        reference,
        settings=settings,
        token_provider=_token_provider(args),
        instance_service=instance_service or InstancesClient.from_settings(settings),
    )
    runner = watch(session, out=out) if args.command == 'watch' else stop(session, out=out)
    try:
        return asyncio.run(runner)
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED


if __name__ == '__main__':
    sys.exit(main())
