from setuptools import setup, find_packages

setup(
    name='hydraulic_sim',
    version='0.1.0',
    description='Acausal component library for isothermal compressible hydraulic circuits',
    author='Hydraulic Simulation Team',
    packages=find_packages(include=['hydraulic_sim', 'hydraulic_sim.*']),
    install_requires=[
        'numpy>=1.24.0',
        'scipy>=1.10.0',
        'CoolProp>=6.4.0',
    ],
    extras_require={
        'dev': [
            'pytest>=7.0.0',
            'pytest-cov>=4.0.0',
        ]
    },
    python_requires='>=3.10',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Science/Research',
        'Topic :: Scientific/Engineering :: Physics',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],
)
