import setuptools
import os

own_dir = os.path.abspath(os.path.dirname(__file__))


def requirements():
    with open(os.path.join(own_dir, 'requirements.txt')) as f:
        for line in f.readlines():
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            yield line


def modules():
    return [
        'ctx',
        'gitutil',
        'http_requests',
    ]


def packages():
    # ccc, ci and kube are namespace packages (w/o __init__.py), so find_packages would miss them
    return [
        'ccc',
        'changelog',
        'ci',
        'github',
        'kube',
    ]


def version():
    with open(os.path.join(own_dir, 'VERSION')) as f:
        return f.read().strip()


setuptools.setup(
    name='changelog-generator',
    version=version(),
    description='Changelog generator for git repositories',
    python_requires='>=3.11',
    py_modules=modules(),
    packages=packages(),
    package_data={
        '':['VERSION'],
    },
    install_requires=list(requirements()),
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'changelog = changelog.cli:main',
        ],
    },
)
