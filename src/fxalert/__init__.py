"""fxalert -- USD-BRL ask rate monitor with threshold sell alerts."""

__version__ = "0.1.0"
