#!filepath: mlpipe/config/model_config.py
from pydantic import BaseModel, ConfigDict, Field


class NaiveBayesConfig(BaseModel):
    """
    NaiveBayesConfig

    YAML 中使用 `lambda`（Python 关键字，字段名为 lambda_）。
    CLI 覆盖是赋值写入，所以赋值同样校验。
    """

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    num_classes: int = Field(default=2, ge=1)
    lambda_: float = Field(default=1.0, ge=0.0, allow_inf_nan=False, alias="lambda")
