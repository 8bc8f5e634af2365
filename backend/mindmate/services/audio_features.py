"""
Prosody feature extraction — pure numpy/scipy (no librosa required).

  audio (mono float32) → extract_audio_features() → Dict[feature_name, float]

Features: f0_mean/f0_std (autocorrelation pitch), rms_mean/rms_std,
zcr_mean, mfcc_1..13_mean, speaking_rate.  A feature that cannot be
computed is reported as 0.0 and logged; extraction itself never raises
for a non-empty signal.
"""
from __future__ import annotations
from math import gcd
from typing import Dict

import numpy as np
from scipy.fft import dct, rfft
from scipy.signal import resample_poly

from mindmate.utils.logging import logger

TARGET_SR = 16000


def _frames(audio: np.ndarray, frame_len: int = 2048, hop: int = 512) -> np.ndarray:
    """Overlapping frames, shape (n_frames, frame_len); short input is zero-padded."""
    if len(audio) < frame_len:
        return np.pad(audio, (0, frame_len - len(audio)))[np.newaxis, :]
    n = 1 + (len(audio) - frame_len) // hop
    idx = np.arange(frame_len)[None, :] + hop * np.arange(n)[:, None]
    return audio[idx]


def _mel_filterbank(n_mels: int, n_fft: int, sr: int) -> np.ndarray:
    """Triangular mel filters, shape (n_mels, n_fft//2+1)."""
    mel_max = 2595 * np.log10(1 + (sr / 2) / 700)
    hz = 700 * (10 ** (np.linspace(0, mel_max, n_mels + 2) / 2595) - 1)
    bins = np.floor((n_fft + 1) * hz / sr).astype(int)

    k = np.arange(n_fft // 2 + 1)[None, :]
    lo, mid, hi = bins[:-2, None], bins[1:-1, None], bins[2:, None]
    rising = (k - lo) / np.maximum(mid - lo, 1)
    falling = (hi - k) / np.maximum(hi - mid, 1)
    return np.clip(np.minimum(rising, falling), 0.0, None)


def mfcc_means(audio: np.ndarray, sr: int = TARGET_SR, n_mfcc: int = 13,
               n_mels: int = 40, n_fft: int = 2048, hop: int = 512) -> np.ndarray:
    frames = _frames(audio, n_fft, hop) * np.hanning(n_fft)
    power = np.abs(rfft(frames, axis=1)) ** 2
    mel = np.maximum(power @ _mel_filterbank(n_mels, n_fft, sr).T, 1e-10)
    coeffs = dct(np.log(mel), type=2, axis=1, norm="ortho")[:, :n_mfcc]
    return coeffs.mean(axis=0)


def pitch_track(audio: np.ndarray, sr: int = TARGET_SR,
                fmin: float = 65.0, fmax: float = 2093.0,
                frame_len: int = 2048, hop: int = 512) -> np.ndarray:
    """Autocorrelation F0 per voiced frame (Hz); [0.0] when nothing is voiced."""
    min_lag = max(1, int(sr / fmax))
    max_lag = min(frame_len - 1, int(sr / fmin))
    f0s = []
    for frame in _frames(audio, frame_len, hop):
        frame = frame - frame.mean()
        std = frame.std()
        if std < 1e-6 or max_lag <= min_lag:
            continue
        frame = frame / std
        corr = np.correlate(frame, frame, mode="full")[frame_len - 1:]
        peak = int(np.argmax(corr[min_lag:max_lag])) + min_lag
        if corr[0] > 1e-9 and corr[peak] / corr[0] > 0.25:
            f0s.append(sr / peak)
    return np.array(f0s or [0.0], dtype=np.float32)


def speaking_rate(rms: np.ndarray, duration_s: float) -> float:
    """Energy-envelope peaks per second, a rough syllable rate."""
    if len(rms) < 3 or duration_s <= 0.1:
        return 0.0
    rising = np.diff(rms)
    peaks = (rising[:-1] > 0) & (rising[1:] < 0) & (rms[1:-1] > rms.mean() * 0.5)
    return float(peaks.sum()) / duration_s


def to_mono_16k(audio: np.ndarray, sr: int) -> np.ndarray:
    audio = np.asarray(audio, dtype=np.float32)
    if audio.ndim > 1:
        audio = audio.mean(axis=1)
    if sr != TARGET_SR:
        g = gcd(sr, TARGET_SR)
        audio = resample_poly(audio, TARGET_SR // g, sr // g).astype(np.float32)
    return audio


def extract_audio_features(audio: np.ndarray, sr: int = TARGET_SR) -> Dict[str, float]:
    audio = to_mono_16k(audio, sr)
    if audio.size == 0:
        raise ValueError("audio signal is empty")
    feats: Dict[str, float] = {}

    try:
        f0 = pitch_track(audio)
        feats["f0_mean"] = float(np.nanmean(f0))
        feats["f0_std"]  = float(np.nanstd(f0))
    except Exception as e:
        logger.warning(f"Audio: F0 failed — {e}")
        feats["f0_mean"] = feats["f0_std"] = 0.0

    frames = _frames(audio)
    rms = np.sqrt(np.mean(frames ** 2, axis=1))
    feats["rms_mean"] = float(rms.mean())
    feats["rms_std"]  = float(rms.std())
    feats["zcr_mean"] = float(np.mean(np.abs(np.diff(np.sign(frames), axis=1)) / 2))

    try:
        for i, value in enumerate(mfcc_means(audio), start=1):
            feats[f"mfcc_{i}_mean"] = float(value)
    except Exception as e:
        logger.warning(f"Audio: MFCC failed — {e}")
        for i in range(1, 14):
            feats[f"mfcc_{i}_mean"] = 0.0

    feats["speaking_rate"] = speaking_rate(rms, len(audio) / TARGET_SR)
    return feats
