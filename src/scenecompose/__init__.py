"""scenecompose: declarative, time-parameterized 2D scenes.

Shapes and flow groups carry timing specs and are sampled at any time
into immutable shape snapshots; YAML manifests describe scenes, and the
render boundary turns them into frames and mp4 video.
"""
