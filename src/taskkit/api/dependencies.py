"""Feature-specific FastAPI dependency injection for the task store and engine."""

from taskkit.modules.task import ExecutionEngine, TaskStore

# Global instances - initialized by ServiceBuilder at app startup
_task_store: TaskStore | None = None
_execution_engine: ExecutionEngine | None = None


def set_task_store(store: TaskStore | None) -> None:
    """Set the global task store instance."""
    global _task_store
    _task_store = store


def get_task_store() -> TaskStore:
    """Get the global task store instance."""
    if _task_store is None:
        raise RuntimeError("Task store not initialized. Use ServiceBuilder.with_tasks() to enable tasks.")
    return _task_store


def set_execution_engine(engine: ExecutionEngine | None) -> None:
    """Set the global execution engine instance."""
    global _execution_engine
    _execution_engine = engine


def get_execution_engine() -> ExecutionEngine:
    """Get the global execution engine instance."""
    if _execution_engine is None:
        raise RuntimeError("Execution engine not initialized. Use ServiceBuilder.with_tasks() to enable tasks.")
    return _execution_engine
