"""Schema alignment and design matrix components."""

from .prototype import (
    ColumnSpec,
    TrainingPrototype,
    load_prototype,
    load_train_columns,
)

from .preprocessing import (
    DataValidator,
    SchemaAligner,
)

from .feature_engineering import (
    ModelFormula,
    DesignMatrixBuilder,
    ColumnReindexer,
    DesignMatrixTransformer,
    create_design_pipeline,
)

__all__ = [
    'ColumnSpec',
    'TrainingPrototype',
    'load_prototype',
    'load_train_columns',
    'DataValidator',
    'SchemaAligner',
    'ModelFormula',
    'DesignMatrixBuilder',
    'ColumnReindexer',
    'DesignMatrixTransformer',
    'create_design_pipeline',
]
