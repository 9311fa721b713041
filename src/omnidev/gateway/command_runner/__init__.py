"""Command runner sub-gateway.

Import from submodules:
- abc: CommandRunner, CommandResult
- real: RealCommandRunner
- fake: FakeCommandRunner
"""
