"""
Worker chain: translate -> render -> critique -> refine, one run per page.
"""
from .worker_chain import ChainSignal, ChainState, WorkerChain, WorkerStage
from .stages import (CritiqueResult, CritiqueStage, TranslateResult, TranslateStage,
                     build_default_stages)

__all__ = [
    'ChainSignal',
    'ChainState',
    'WorkerChain',
    'WorkerStage',
    'TranslateResult',
    'CritiqueResult',
    'TranslateStage',
    'CritiqueStage',
    'build_default_stages',
]
