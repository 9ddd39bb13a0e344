from pathlib import Path
from setuptools import find_packages, setup


def read_requirements() -> list[str]:
    req_path = Path(__file__).parent / "requirements.txt"
    if not req_path.exists():
        return []
    return [line.strip() for line in req_path.read_text(encoding="utf-8").splitlines() if line.strip() and not line.startswith("#")]


setup(
    name="compliance-monitor",
    version="0.1.0",
    description="HIPAA/GDPR compliance risk evaluation engine for AI model outputs",
    packages=find_packages(include=["compliance_monitor", "compliance_monitor.*"]),
    install_requires=read_requirements(),
    extras_require={"test": ["pytest>=7.0", "httpx>=0.24"]},
    entry_points={"console_scripts": ["compliance-monitor-api=compliance_monitor.ui.server:main"]},
    python_requires=">=3.10",
    include_package_data=True,
)
