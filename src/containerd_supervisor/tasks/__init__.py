"""
Task subsystem.

Components:
- task_models.py: data structures (TaskState, ExitResult, TaskStatusSnapshot)
- errors.py: exceptions raised by lifecycle operations
- signals.py: conversion of orchestrator signals into runtime signals
- handle.py: TaskHandle, the per-task lifecycle state machine
- monitor.py: background exit watcher feeding exit notifications into a handle
"""
