from .execution_host_port import ExecutionHostPort

__all__ = ["ExecutionHostPort"]
