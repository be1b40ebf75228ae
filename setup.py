from setuptools import setup, find_packages
import re

# Read version from paywithhold/__init__.py
with open('paywithhold/__init__.py') as f:
    version = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.MULTILINE).group(1)

setup(
    name='pay-withhold',
    version=version,
    packages=find_packages(include=['paywithhold', 'paywithhold.*']),
    package_data={
        'paywithhold.sdk': ['tax_rules/*.yaml'],
    },
    install_requires=[
        'PyYAML>=6.0',
        'click>=8.0',
        'pydantic>=2.0.0',
        'rich>=13.0',
        'fastapi>=0.100',
        'uvicorn>=0.23',
    ],
    extras_require={
        'mcp': [
            'mcp[cli]>=1.0.0,<2',
        ],
        'test': [
            'pytest>=7.0',
            'httpx>=0.24',
        ],
    },
    entry_points={
        'console_scripts': [
            'pay-withhold=paywithhold.cli.__main__:main',
            'pay-withhold-mcp=paywithhold.mcp.server:run_server',
        ],
    },
    author='Personal',
    description='Multi-state payroll tax withholding engine.',
    python_requires='>=3.10',
)
