from __future__ import annotations

import random

FAMILY_NAMES = [
    "Wang", "Li", "Zhang", "Liu", "Chen", "Yang", "Huang", "Zhao", "Wu", "Zhou",
    "Xu", "Sun", "Ma", "Zhu", "Hu", "Guo", "He", "Lin", "Gao", "Luo",
    "Zheng", "Liang", "Xie", "Song", "Tang", "Han", "Feng", "Deng", "Cao", "Peng",
    "Zeng", "Xiao", "Tian", "Dong", "Pan", "Yuan", "Cai", "Jiang", "Yu", "Du",
    "Ye", "Cheng", "Wei", "Su", "Lu", "Ding", "Ren", "Shen", "Yao", "Fang",
]

GIVEN_NAMES = [
    "Hao", "Yu", "Xuan", "Chen", "Jie", "Rui", "Ming", "Tian", "Yang", "Zhe",
    "Yichen", "Zihan", "Haoran", "Yuxuan", "Junjie", "Zimo", "Yifan", "Jiahao", "Mingyu", "Siyuan",
    "Ruoxi", "Xinyi", "Yutong", "Shiyu", "Jiayi", "Ziyi", "Yunxi", "Kexin", "Mengqi", "Wenjing",
    "Boyuan", "Chenxi", "Dongyu", "Fengyi", "Guanyu", "Hanwen", "Jingyu", "Kaiwen", "Lingfeng", "Muyang",
    "Qianhui", "Ruiqi", "Shuyao", "Tianyi", "Weijie", "Xiaoyu", "Yanbing", "Zeyu", "Zhiyuan", "Zixuan",
]

DRAW_ATTEMPTS = 50


class NameGenerator:
    """Random family/given name pairs, never handing out the same name twice."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)
        self._used: set[str] = set()

    def next_name(self) -> str:
        for _ in range(DRAW_ATTEMPTS):
            name = f"{self._rng.choice(FAMILY_NAMES)} {self._rng.choice(GIVEN_NAMES)}"
            if name not in self._used:
                self._used.add(name)
                return name
        # Qualification is keyed by name, so a crowded roster gets numbered names.
        base = f"{self._rng.choice(FAMILY_NAMES)} {self._rng.choice(GIVEN_NAMES)}"
        number = 2
        while f"{base} {number}" in self._used:
            number += 1
        name = f"{base} {number}"
        self._used.add(name)
        return name
