"""Voice profile loader for YAML-based session tuning"""

import yaml
from pathlib import Path
from typing import Dict, Any, List
import logging

log = logging.getLogger(__name__)

PROFILES_DIR = Path(__file__).parent.parent.parent / "config" / "voice_profiles"


def load_voice_profile(profile_name: str = "default", profiles_dir: Path = PROFILES_DIR) -> Dict[str, Any]:
    """
    Load session timing overrides from a YAML profile

    Args:
        profile_name: Name of the profile (default, patient, quick)
        profiles_dir: Directory holding <name>.yml files

    Returns:
        Dict of session settings, empty when the profile is missing or unreadable
    """
    config_file = profiles_dir / f"{profile_name}.yml"

    if not config_file.exists():
        log.warning(f"Voice profile not found: {config_file}, using defaults")
        return {}

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        log.error(f"Error loading voice profile: {e}")
        return {}

    if not isinstance(config, dict):
        log.error(f"Voice profile {config_file} must be a mapping")
        return {}

    session = config.get("session") or {}
    if not isinstance(session, dict):
        log.error(f"Voice profile {config_file}: session must be a mapping")
        return {}

    return session


def list_available_profiles(profiles_dir: Path = PROFILES_DIR) -> List[str]:
    """List available voice profiles"""
    if not profiles_dir.exists():
        return []

    profiles = [
        f.stem for f in profiles_dir.glob("*.yml")
    ]

    return sorted(profiles)
