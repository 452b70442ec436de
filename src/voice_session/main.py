#!/usr/bin/env python3
"""
SP.AI Voice Client - Main Entry Point

Console front end for the SP.AI server. Each line typed is treated as a
final speech recognition result, so the wake word, debounce and reconnect
behavior can be driven from a terminal.
"""

import sys
import logging
import asyncio
import argparse
from rich.console import Console

from src.api.logging_config import setup_logging
from .config import create_default_config
from .assistant import VoiceAssistant
from .config_loader import list_available_profiles


console = Console()


def parse_args():
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="SP.AI Voice Client - wake word driven assistant"
    )

    parser.add_argument(
        "-s", "--server-url",
        dest="server_url",
        help="Base URL of the SP.AI server (default: $SP_AI_SERVER_URL or http://localhost:8000)"
    )

    parser.add_argument(
        "--profile",
        choices=list_available_profiles() or None,
        help="Voice timing profile to load"
    )

    parser.add_argument(
        "-w", "--wake-word",
        dest="wake_word",
        help="Wake word that activates the assistant"
    )

    parser.add_argument(
        "--no-audio",
        action="store_true",
        help="Do not play reply audio"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARN", "ERROR"],
        help="Logging level (default depends on ENVIRONMENT)"
    )

    return parser.parse_args()


def main():
    """Main entry point"""
    args = parse_args()

    # Create configuration
    config = create_default_config(
        profile=args.profile,
        server_url=args.server_url,
        wake_word=args.wake_word,
        play_audio=False if args.no_audio else None,
    )

    setup_logging(config.environment, args.log_level or config.log_level or None)

    # Validate configuration
    errors = config.validate()
    if errors:
        console.print("[bold red]Configuration errors:[/bold red]")
        for error in errors:
            console.print(f"  • {error}")
        console.print("\nPlease check your .env file and configuration.")
        sys.exit(1)

    # Create and run assistant
    try:
        assistant = VoiceAssistant(config)
        asyncio.run(assistant.run())
    except KeyboardInterrupt:
        console.print("\n[dim]Goodbye![/dim]")
        sys.exit(0)
    except Exception as e:
        console.print(f"[bold red]Fatal error:[/bold red] {e}")
        logging.exception("Fatal error")
        sys.exit(1)


if __name__ == "__main__":
    main()
