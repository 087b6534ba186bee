from setuptools import find_packages, setup

setup(
    name='pyhyb',
    version='0.1.0',
    author='pyhyb developers',
    packages=find_packages(exclude=['examples', 'docs', 'tests', 'tools', 'setup.py']),
    license='Lesser GPL v2.1',
    description='Python implementation of hybridization expansion continuous '
                'time quantum Monte Carlo',
    python_requires=">=3.6.0",
    long_description=open('README.rst').read(),
    install_requires=['numpy', 'scipy', 'h5py', 'pandas'],
    extras_require={
        'mpi': ['mpi4py'],
        'test': ['pytest'],
    },
)
