from typing import Tuple

import torch
from torch.utils.data import Dataset as TorchDataset


class BottleneckDataset(TorchDataset[Tuple[torch.Tensor, torch.Tensor]]):
    """PyTorch Dataset pairing bottleneck features with label keys."""

    def __init__(self, features: torch.Tensor, label_keys: torch.Tensor):
        assert len(features) == len(
            label_keys
        ), "Feature and label counts differ in dataset split."
        self.features = features.to(torch.float32)
        # CrossEntropyLoss expects long
        self.label_keys = label_keys.to(torch.long)

    def __len__(self) -> int:
        return len(self.features)

    def __getitem__(self, idx: int) -> Tuple[torch.Tensor, torch.Tensor]:
        return self.features[idx], self.label_keys[idx]

    @property
    def feature_dim(self) -> int:
        return self.features.shape[1] if len(self.features) else 0
