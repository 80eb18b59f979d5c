class BulkOpsConfig:
    """
    Global configuration for django-bulk-ops operations.

    Attributes:
        transactional_large_operations: Run the whole staging-table merge script inside a transaction.
                                        Defaults to False, the script is sent as one batch and relies on
                                        the atomicity of each statement.
        cleanup_on_failure: When a merge or partition script fails, issue a DROP ... IF EXISTS for its
                            staging table before re-raising the error. Defaults to True.
        default_batch_size: Number of rows BatchedOperation accumulates before flushing, when no size
                            is passed explicitly.
    """
    transactional_large_operations: bool = False
    cleanup_on_failure: bool = True
    default_batch_size: int = 1000


# Global configuration instance
config = BulkOpsConfig()


def configure(**kwargs):
    """
    Configure global settings for django-bulk-ops.

    Args:
        transactional_large_operations: Whether to wrap large merge scripts in a transaction
        cleanup_on_failure: Whether to drop staging tables left behind by a failed script
        default_batch_size: Default flush size for batched operations

    Example:
        import django_bulk_ops
        django_bulk_ops.configure(transactional_large_operations=True)
    """
    for key, value in kwargs.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            raise ValueError(f"Unknown configuration option: {key}")
