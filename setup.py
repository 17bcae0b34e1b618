"""打包配置。"""

from __future__ import annotations

from setuptools import find_packages, setup


VERSION = "0.1.0"


setup(
    name="upmotion",
    version=VERSION,
    description="Rule-based activity recognition from streaming motion-sensor samples",
    python_requires=">=3.10",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    include_package_data=True,
    install_requires=[
        "numpy",
        "pydantic>=2",
        "fastapi",
        "uvicorn",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
)
