"""claudeye - watches agent sessions in tmux panes and classifies their state."""

__version__ = "0.1.0"
