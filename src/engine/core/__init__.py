"""
どこで: `engine.core` サブパッケージ。
何を: シーングラフ（Object3D/Mesh/カメラ/ジオメトリ/マテリアル）・レイキャスト・フレーム駆動・描画ウィンドウ。
なぜ: リコンサイラ/イベント/レンダラが共有する最下層を GUI/GPU 依存から切り離して提供するため。
"""
