"""
Utility functions
"""
from .id_generator import generate_word_id, generate_avatar_path

__all__ = ['generate_word_id', 'generate_avatar_path']
