from .app import create_app, install_reload_signal

__all__ = ["create_app", "install_reload_signal"]
