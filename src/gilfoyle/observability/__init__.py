from gilfoyle.observability.logger import bind_turn, clear_turn, get_logger, setup_logging

__all__ = ["bind_turn", "clear_turn", "get_logger", "setup_logging"]
