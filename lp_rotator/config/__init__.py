from lp_rotator.config.settings import Settings

__all__ = ["Settings"]
