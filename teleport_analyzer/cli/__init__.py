"""Command-line interface for claude-teleport-analyzer."""
