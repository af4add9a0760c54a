"""Shared synthetic hand poses.

Poses are normalized image coordinates with y growing downward. Every
finger has its MCP at y=0.60 and PIP at y=0.50; the tip position decides
the finger state:

- "up":   tip at 0.30 (above the PIP, extended)
- "down": tip at 0.65 (below the PIP and the knuckle, folded)
- "half": tip at 0.55 (below the PIP but above the knuckle)
"""

from types import SimpleNamespace

import numpy as np
import pytest

_FINGERS = [(5, 6, 7, 8), (9, 10, 11, 12), (13, 14, 15, 16), (17, 18, 19, 20)]
_TIP_Y = {"up": 0.30, "down": 0.65, "half": 0.55}
_DIP_Y = {"up": 0.40, "down": 0.60, "half": 0.53}


def build_hand(index="up", middle="down", ring="down", pinky="down", dx=0.0, dy=0.0):
    lm = np.zeros((21, 2), dtype=np.float32)
    lm[0] = [0.5, 0.9]
    lm[1:5] = [[0.40, 0.85], [0.33, 0.78], [0.28, 0.72], [0.25, 0.66]]
    for i, ((mcp, pip, dip, tip), state) in enumerate(zip(_FINGERS, (index, middle, ring, pinky))):
        x = 0.38 + 0.08 * i
        lm[mcp] = [x, 0.60]
        lm[pip] = [x, 0.50]
        lm[dip] = [x, _DIP_Y[state]]
        lm[tip] = [x, _TIP_Y[state]]
    lm += np.array([dx, dy], dtype=np.float32)
    return lm


def pointing(dx=0.0, dy=0.0):
    return build_hand("up", "down", "down", "down", dx=dx, dy=dy)


def fist(dx=0.0, dy=0.0):
    return build_hand("down", "down", "down", "down", dx=dx, dy=dy)


def open_palm(dx=0.0, dy=0.0):
    return build_hand("up", "up", "up", "up", dx=dx, dy=dy)


def peace(dx=0.0, dy=0.0):
    """Index and middle up: classified as unknown."""
    return build_hand("up", "up", "down", "down", dx=dx, dy=dy)


@pytest.fixture
def make_hand():
    return build_hand


@pytest.fixture
def poses():
    return SimpleNamespace(pointing=pointing, fist=fist, open_palm=open_palm, peace=peace)
