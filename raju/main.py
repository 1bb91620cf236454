#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Main entry point for raju CLI."""

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from . import config
from . import secrets_manager
from .assets import ModelManager
from .debug_logger import DebugLogger
from .exceptions import RajuError
from .execution import TaskOrchestrator
from .memory import get_experience_store
from .models import AgentMode, DownloadProgress, ExecutionMode, Experience, ReasoningPhase
from .settings_manager import (
    RUNTIME_SETTINGS,
    apply_runtime_settings,
    get_saved_mode,
    load_settings,
    reset_settings,
    save_settings,
    set_runtime_setting,
)


def _format_time(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")


def _format_bytes(size: float) -> str:
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def _print_phase(task_id: str, phase: ReasoningPhase) -> None:
    print(f"[{phase.type.value.upper()}] {phase.content}")


def _print_experience_line(experience: Experience) -> None:
    status = "✓" if experience.success else "✗"
    print(f"{status} {experience.id}  {_format_time(experience.timestamp)}  "
          f"[{experience.mode.value}/{experience.model}]  {experience.task_description[:60]}")


def _print_experience(experience: Experience) -> None:
    print(f"ID:        {experience.id}")
    print(f"Task:      {experience.task_description}")
    print(f"Mode:      {experience.mode.value}")
    print(f"Model:     {experience.model}")
    print(f"Time:      {_format_time(experience.timestamp)}")
    print(f"Success:   {'yes' if experience.success else 'no'}")
    if experience.error_message:
        print(f"Error:     {experience.error_message}")
    print("\nReasoning:")
    for phase in experience.reasoning.phases:
        print(f"  [{phase.type.value}] {phase.content}")
    print("\nOutput:")
    print(experience.output)


def _print_mode(mode: AgentMode) -> None:
    print(f"Mode:     {mode.type.value}")
    if mode.is_cloud:
        print(f"Provider: {mode.active_provider or config.DEFAULT_PROVIDER}")
    print(f"Model:    {mode.active_model or config.DEFAULT_MODEL_LABEL}")


# ----------------------------------------------------------------------
# Command handlers
# ----------------------------------------------------------------------

def cmd_run(args: argparse.Namespace) -> int:
    mode = get_saved_mode()
    if args.mode:
        mode.type = ExecutionMode(args.mode)
    if args.provider:
        mode.active_provider = args.provider
    if args.model:
        mode.active_model = args.model

    orchestrator = TaskOrchestrator(
        mode=mode,
        request_timeout=args.timeout,
        on_phase=None if args.quiet else _print_phase,
    )
    orchestrator.initialize()

    task_description = " ".join(args.task)
    experience = orchestrator.execute_task(task_description)

    print()
    print(experience.output)
    if not experience.success:
        print(f"\n✗ Task recorded as failed ({experience.id})")
        return 1
    print(f"\n✓ Task complete ({experience.id})")
    return 0


def cmd_memory(args: argparse.Namespace) -> int:
    store = get_experience_store()
    store.initialize()

    if args.memory_command == "list":
        if args.mode:
            experiences = store.filter_by_mode(args.mode)
        elif args.model:
            experiences = store.filter_by_model(args.model)
        else:
            experiences = store.get_all()
        experiences = sorted(experiences, key=lambda e: e.timestamp, reverse=True)[:args.limit]
        if not experiences:
            print("No experiences stored.")
        for experience in experiences:
            _print_experience_line(experience)
        return 0

    if args.memory_command == "search":
        results = store.search(" ".join(args.query))
        print(f"{len(results)} matching experience(s)")
        for experience in results:
            _print_experience_line(experience)
        return 0

    if args.memory_command == "show":
        experience = store.get_by_id(args.id)
        if experience is None:
            print(f"✗ Experience not found: {args.id}")
            return 1
        _print_experience(experience)
        return 0

    if args.memory_command == "stats":
        stats = store.get_stats()
        rate = store.get_success_rate()
        print(f"Experiences:  {stats.total_experiences}")
        print(f"Memory size:  {_format_bytes(stats.total_memory_size)}")
        print(f"Last cleanup: {_format_time(stats.last_cleanup) if stats.last_cleanup else 'never'}")
        print(f"Success rate: {rate.rate:.1f}% ({rate.successful} succeeded, {rate.failed} failed)")
        return 0

    if args.memory_command == "export":
        payload = store.export()
        if args.output:
            Path(args.output).write_text(payload, encoding="utf-8")
            print(f"✓ Exported {store.count()} experience(s) to {args.output}")
        else:
            print(payload)
        return 0

    if args.memory_command == "delete":
        store.delete(args.id)
        print(f"✓ Deleted {args.id}")
        return 0

    if args.memory_command == "clear":
        if not args.yes:
            response = input("Delete all stored experiences? (y/N): ")
            if response.lower() != "y":
                print("Aborted by user")
                return 1
        store.clear_all()
        print("✓ Cleared all experiences")
        return 0

    return 1


def cmd_keys(args: argparse.Namespace) -> int:
    if args.keys_command == "set":
        secrets_manager.set_api_key(args.provider, args.api_key)
        print(f"✓ Saved {args.provider} API key: {secrets_manager.mask_api_key(args.api_key.strip())}")
        return 0

    if args.keys_command == "list":
        configured = {entry["provider"]: entry for entry in secrets_manager.list_api_keys()}
        print("\nAPI Keys:")
        print("=" * 60)
        for provider in config.SUPPORTED_PROVIDERS:
            entry = configured.get(provider)
            if entry:
                print(f"{provider:12} : {entry['key']} ({entry['source']})")
            else:
                print(f"{provider:12} : (not set)")
        print("=" * 60)
        return 0

    if args.keys_command == "delete":
        if secrets_manager.delete_api_key(args.provider):
            print(f"✓ Deleted {args.provider} API key")
        else:
            print(f"No API key found for {args.provider}")
        return 0

    if args.keys_command == "verify":
        if secrets_manager.verify_api_key(args.provider, args.api_key):
            print(f"✓ {args.provider} API key is valid")
            return 0
        print(f"✗ {args.provider} API key could not be verified")
        return 1

    if args.keys_command == "clear":
        if not args.yes:
            response = input("Delete all saved API keys? (y/N): ")
            if response.lower() != "y":
                print("Aborted by user")
                return 1
        secrets_manager.clear_all_api_keys()
        print("✓ Cleared saved API keys (environment variables are untouched)")
        return 0

    return 1


def cmd_models(args: argparse.Namespace) -> int:
    manager = ModelManager()
    manager.initialize()

    if args.models_command == "download":
        def on_progress(progress: DownloadProgress) -> None:
            if args.quiet:
                return
            print(f"\r  {progress.percentage:5.1f}%  {_format_bytes(progress.downloaded_bytes)}"
                  f"  {_format_bytes(progress.speed)}/s  eta {progress.eta:.0f}s", end="", flush=True)

        model = manager.download_model(args.url, args.name, on_progress=on_progress)
        if not args.quiet:
            print()
        print(f"✓ Downloaded {model.name} ({_format_bytes(model.file_size)}) as {model.id}")
        return 0

    if args.models_command == "list":
        models = manager.get_all_models()
        if not models:
            print("No models downloaded.")
        for model in models:
            marker = "*" if model.is_active else " "
            print(f"{marker} {model.id}  {model.name}  {_format_bytes(model.file_size)}  "
                  f"{_format_time(model.downloaded_at)}")
        return 0

    if args.models_command == "activate":
        model = manager.set_active_model(args.id)
        mode = get_saved_mode()
        mode.active_model = model.name
        save_settings(mode)
        print(f"✓ Active model: {model.name}")
        return 0

    if args.models_command == "delete":
        manager.delete_model(args.id)
        print(f"✓ Deleted model {args.id}")
        return 0

    if args.models_command == "storage":
        info = manager.get_storage_info()
        print(f"Models directory: {manager.models_dir}")
        print(f"Total: {_format_bytes(info.total_space)}")
        print(f"Used:  {_format_bytes(info.used_space)}")
        print(f"Free:  {_format_bytes(info.free_space)}")
        return 0

    return 1


def cmd_mode(args: argparse.Namespace) -> int:
    if args.mode_command == "set":
        mode = get_saved_mode()
        mode.type = ExecutionMode(args.type)
        if args.provider:
            mode.active_provider = args.provider
        if args.model:
            mode.active_model = args.model
        if mode.is_cloud and not mode.active_provider:
            mode.active_provider = config.DEFAULT_PROVIDER
        path = save_settings(mode)
        print(f"✓ Saved mode to {path}")

    _print_mode(get_saved_mode())
    return 0


def cmd_settings(args: argparse.Namespace) -> int:
    if args.settings_command == "reset":
        path = reset_settings()
        print(f"✓ Removed {path}" if path else "No saved settings to remove")
        return 0

    # Loading the saved mode also applies the persisted runtime settings
    mode = get_saved_mode()
    if args.settings_command == "set":
        value = set_runtime_setting(args.key, args.value)
        path = save_settings(mode)
        print(f"✓ {args.key} = {value} (saved to {path})")
        return 0

    for key, setting in RUNTIME_SETTINGS.items():
        print(f"{key:16} = {setting.getter()}  # {setting.description}")
    return 0


# ----------------------------------------------------------------------
# Argument parsing
# ----------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="raju",
        description="raju - Plan/Execute/Reflect task agent with experience memory",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable detailed debug logging to file"
    )
    parser.add_argument(
        "-v",
        "--version",
        action="store_true",
        help="Show raju version information and exit",
    )
    subparsers = parser.add_subparsers(dest="command")

    providers = list(config.SUPPORTED_PROVIDERS)
    modes = [m.value for m in ExecutionMode]

    # run
    run_parser = subparsers.add_parser("run", help="Run a task through plan, execute and reflect")
    run_parser.add_argument("task", nargs="+", help="Task description")
    run_parser.add_argument("--mode", choices=modes, help="Override the saved execution mode")
    run_parser.add_argument("--provider", choices=providers, help="Remote provider for cloud mode")
    run_parser.add_argument("--model", help="Model name passed to the provider")
    run_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help=f"Remote request timeout in seconds (default: {config.REQUEST_TIMEOUT_SECONDS:g})"
    )
    run_parser.add_argument("-q", "--quiet", action="store_true", help="Only print the final output")
    run_parser.set_defaults(handler=cmd_run)

    # memory
    memory_parser = subparsers.add_parser("memory", help="Browse and manage stored experiences")
    memory_sub = memory_parser.add_subparsers(dest="memory_command", required=True)
    list_parser = memory_sub.add_parser("list", help="List recent experiences")
    list_parser.add_argument("--limit", type=int, default=20)
    list_parser.add_argument("--mode", choices=modes)
    list_parser.add_argument("--model")
    search_parser = memory_sub.add_parser("search", help="Search task, input and output text")
    search_parser.add_argument("query", nargs="+")
    show_parser = memory_sub.add_parser("show", help="Show one experience with its reasoning")
    show_parser.add_argument("id")
    memory_sub.add_parser("stats", help="Show memory statistics")
    export_parser = memory_sub.add_parser("export", help="Export all experiences as JSON")
    export_parser.add_argument("-o", "--output", help="Write to a file instead of stdout")
    delete_parser = memory_sub.add_parser("delete", help="Delete one experience")
    delete_parser.add_argument("id")
    clear_parser = memory_sub.add_parser("clear", help="Delete all experiences")
    clear_parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    memory_parser.set_defaults(handler=cmd_memory)

    # keys
    keys_parser = subparsers.add_parser("keys", help="Manage provider API keys")
    keys_sub = keys_parser.add_subparsers(dest="keys_command", required=True)
    set_parser = keys_sub.add_parser("set", help="Save an API key")
    set_parser.add_argument("provider", choices=providers)
    set_parser.add_argument("api_key")
    keys_sub.add_parser("list", help="List configured keys (masked)")
    key_delete_parser = keys_sub.add_parser("delete", help="Delete a saved key")
    key_delete_parser.add_argument("provider", choices=providers)
    verify_parser = keys_sub.add_parser("verify", help="Check a key against the provider")
    verify_parser.add_argument("provider", choices=providers)
    verify_parser.add_argument("api_key", nargs="?", help="Key to check (default: the saved key)")
    keys_clear_parser = keys_sub.add_parser("clear", help="Delete every saved key")
    keys_clear_parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    keys_parser.set_defaults(handler=cmd_keys)

    # models
    models_parser = subparsers.add_parser("models", help="Manage local model files")
    models_sub = models_parser.add_subparsers(dest="models_command", required=True)
    download_parser = models_sub.add_parser("download", help="Download a GGUF model")
    download_parser.add_argument("url")
    download_parser.add_argument("name")
    download_parser.add_argument("-q", "--quiet", action="store_true", help="Hide download progress")
    models_sub.add_parser("list", help="List downloaded models")
    activate_parser = models_sub.add_parser("activate", help="Make a model the active one")
    activate_parser.add_argument("id")
    model_delete_parser = models_sub.add_parser("delete", help="Delete a model and its file")
    model_delete_parser.add_argument("id")
    models_sub.add_parser("storage", help="Show storage usage of the models volume")
    models_parser.set_defaults(handler=cmd_models)

    # mode
    mode_parser = subparsers.add_parser("mode", help="Show or change the execution mode")
    mode_sub = mode_parser.add_subparsers(dest="mode_command", required=True)
    mode_sub.add_parser("show", help="Show the saved mode")
    mode_set_parser = mode_sub.add_parser("set", help="Save a new mode")
    mode_set_parser.add_argument("type", choices=modes)
    mode_set_parser.add_argument("--provider", choices=providers)
    mode_set_parser.add_argument("--model")
    mode_parser.set_defaults(handler=cmd_mode)

    # settings
    settings_parser = subparsers.add_parser("settings", help="Show or change runtime settings")
    settings_sub = settings_parser.add_subparsers(dest="settings_command", required=True)
    settings_sub.add_parser("show", help="Show current runtime settings")
    settings_set_parser = settings_sub.add_parser("set", help="Change and save a runtime setting")
    settings_set_parser.add_argument("key", choices=list(RUNTIME_SETTINGS))
    settings_set_parser.add_argument("value")
    settings_sub.add_parser("reset", help="Remove saved settings and restore defaults")
    settings_parser.set_defaults(handler=cmd_settings)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the raju CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from raju.versioning import build_version_output

        info = build_version_output()
        print(f"raju {info['version']} ({info['commit']})")
        return 0

    if not args.command:
        parser.print_help()
        return 1

    config.ensure_data_dirs()
    apply_runtime_settings(load_settings().get("runtime_settings") or {})

    # Initialize debug logging if requested
    debug_logger = DebugLogger.initialize(enabled=args.debug)
    if args.debug:
        print(f"Debug logging enabled: {debug_logger.log_file_path}")

    debug_logger.log("main", "CONFIGURATION", {
        "command": args.command,
        "data_dir": str(config.RAJU_DIR),
    })

    try:
        return args.handler(args)
    except KeyboardInterrupt:
        debug_logger.log("main", "USER_INTERRUPT", {}, "WARNING")
        print("\n\nAborted by user")
        return 1
    except (RajuError, ValueError, OSError) as e:
        debug_logger.log_error("main", e, {"command": args.command})
        print(f"✗ {e}")
        return 1
    finally:
        debug_logger.close()


if __name__ == "__main__":
    sys.exit(main())
