"""Gateways isolating omnidev from processes and the system clock.

Import from submodules:
- command_runner: CommandRunner, RealCommandRunner, FakeCommandRunner
- time: Time, RealTime, FakeTime
"""
