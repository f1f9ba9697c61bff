import logging
from pathlib import Path
from typing import List, Optional

from mutagen import File as MutagenFile

from models.track import Track

logger = logging.getLogger(__name__)


class MusicLibrary:
    """Service for discovering meditation audio files."""

    SUPPORTED_EXTENSIONS = {'.mp3', '.mp4', '.m4a', '.wav', '.ogg', '.flac'}
    DEFAULT_AUDIO_DIR = Path.home() / "Music" / "meditations"

    def __init__(self, audio_dir: Optional[Path] = None):
        """Initialize MusicLibrary with optional custom audio directory.

        Args:
            audio_dir: Directory to scan. Defaults to ~/Music/meditations.
        """
        self.audio_dir = Path(audio_dir) if audio_dir else self.DEFAULT_AUDIO_DIR
        self._tracks: List[Track] = []

    def scan(self) -> List[Track]:
        """Scan the audio directory (not recursively) for audio files.

        Returns:
            Deduplicated list of Track objects sorted by file name.

        Raises:
            FileNotFoundError: If the audio directory does not exist.
            PermissionError: If the audio directory cannot be read.
        """
        if not self.audio_dir.is_dir():
            raise FileNotFoundError(f"Audio directory not found: {self.audio_dir}")

        audio_files = {
            path.resolve()
            for path in self.audio_dir.iterdir()
            if path.is_file() and path.suffix.lower() in self.SUPPORTED_EXTENSIONS
        }

        self._tracks = [
            Track.from_file(file_path, self._probe_duration(file_path))
            for file_path in sorted(audio_files, key=lambda p: (p.name.lower(), str(p)))
        ]

        logger.info(f"Found {len(self._tracks)} tracks in {self.audio_dir}")
        return self._tracks

    def get_tracks(self) -> List[Track]:
        """Return cached track list from the last scan."""
        return self._tracks

    def get_track_by_index(self, index: int) -> Optional[Track]:
        if 0 <= index < len(self._tracks):
            return self._tracks[index]
        return None

    def index_of(self, track: Optional[Track]) -> Optional[int]:
        if track is None or track not in self._tracks:
            return None
        return self._tracks.index(track)

    def find_by_name(self, name: Optional[str]) -> Optional[Track]:
        for track in self._tracks:
            if track.name == name:
                return track
        return None

    @staticmethod
    def _probe_duration(file_path: Path) -> Optional[float]:
        """Read the duration in seconds with mutagen, or None if unknown."""
        try:
            audio = MutagenFile(file_path)
        except Exception as e:
            logger.warning(f"Could not read metadata from {file_path}: {e}")
            return None

        if audio is None or not getattr(audio, 'info', None):
            return None

        length = getattr(audio.info, 'length', None)
        return float(length) if length else None
