"""
Config loader for HandSignal.
Loads YAML configuration with dataclass validation.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import yaml


@dataclass
class CaptureTier:
    """
    One fallback option for opening a camera.

    device_id None means "any device"; width/height/fps None keep the
    driver default.
    """
    name: str
    device_id: Optional[int] = 0
    width: Optional[int] = None
    height: Optional[int] = None
    fps: Optional[int] = None


def default_tiers() -> List[CaptureTier]:
    """Front camera at low resolution, then any resolution, then any device."""
    return [
        CaptureTier(name="front-low-res", device_id=0, width=640, height=480),
        CaptureTier(name="front-any-res", device_id=0),
        CaptureTier(name="any-device", device_id=None),
    ]


@dataclass
class CameraConfig:
    tiers: List[CaptureTier] = field(default_factory=default_tiers)
    max_device_index: int = 4      # Highest index probed by an "any device" tier
    warmup_timeout: float = 2.0    # Seconds to wait for the first frame


@dataclass
class MediaPipeConfig:
    model_path: Optional[str] = None
    use_gpu: bool = True
    num_hands: int = 1
    min_detection_confidence: float = 0.5
    min_presence_confidence: float = 0.5
    min_tracking_confidence: float = 0.5


@dataclass
class SchedulerConfig:
    tick_rate: int = 60   # Ticks per second, the "display refresh" cadence


@dataclass
class UIConfig:
    show_landmarks: bool = True
    window_width: int = 640
    window_height: int = 480


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class Config:
    camera: CameraConfig = field(default_factory=CameraConfig)
    mediapipe: MediaPipeConfig = field(default_factory=MediaPipeConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _dict_to_dataclass(cls, data: dict):
    """Convert a dict to a dataclass, ignoring unknown keys."""
    if data is None:
        return cls()
    field_names = {f.name for f in cls.__dataclass_fields__.values()}
    filtered = {k: v for k, v in data.items() if k in field_names}
    return cls(**filtered)


def _load_camera(data: Optional[dict]) -> CameraConfig:
    """Camera section needs its tier list converted item by item."""
    camera = _dict_to_dataclass(CameraConfig, data)
    if data and data.get('tiers') is not None:
        camera.tiers = [_dict_to_dataclass(CaptureTier, t) for t in data['tiers']]
    return camera


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default config.yaml
                    in project root.

    Returns:
        Config dataclass with all settings.
    """
    if config_path is None:
        # Default to config.yaml in project root
        config_path = Path(__file__).parent.parent.parent / "config.yaml"

    config_path = Path(config_path)

    if not config_path.exists():
        # Return defaults if no config file
        return Config()

    with open(config_path, 'r') as f:
        data = yaml.safe_load(f) or {}

    return Config(
        camera=_load_camera(data.get('camera')),
        mediapipe=_dict_to_dataclass(MediaPipeConfig, data.get('mediapipe')),
        scheduler=_dict_to_dataclass(SchedulerConfig, data.get('scheduler')),
        ui=_dict_to_dataclass(UIConfig, data.get('ui')),
        logging=_dict_to_dataclass(LoggingConfig, data.get('logging')),
    )
