from setuptools import setup, find_packages

setup(
    name="ppg_heart_rate",
    version="0.1.0",
    description="Dual-method real-time heart-rate estimation from a PPG sample stream",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main"],
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24",
        "scipy>=1.10",
    ],
    extras_require={
        "dev": ["pytest>=7.4"],
    },
    entry_points={
        "console_scripts": [
            "ppg-heart-rate=main:main",
        ]
    },
)
