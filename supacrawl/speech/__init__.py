"""Speech package: ElevenLabs synthesis and audio playback handles."""

from supacrawl.speech.audio import AudioHandle, AudioPlayer, BrowserPlayer, FilePlayer
from supacrawl.speech.synthesizer import SpeechSynthesizer

__all__ = ["AudioHandle", "AudioPlayer", "BrowserPlayer", "FilePlayer", "SpeechSynthesizer"]
